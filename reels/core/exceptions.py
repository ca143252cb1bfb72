class ReelsError(Exception):
    pass


class NotFoundError(ReelsError):
    pass


class ValidationFailed(ReelsError):
    pass


class NotConfiguredError(ReelsError):
    pass


class StorageError(ReelsError):
    pass


class TranscriptionError(ReelsError):
    pass


class ClassificationError(ReelsError):
    pass
