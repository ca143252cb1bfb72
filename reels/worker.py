from celery import Celery

from reels.core.config import RedisSettings, UploadSettings

redis_config = RedisSettings()
upload_config = UploadSettings()

celery_app = Celery(
    "edureels",
    broker=redis_config.redis_url,
    backend=redis_config.redis_url,
    include=["reels.tasks.validation_task"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_soft_time_limit=upload_config.validation_timeout,
    task_time_limit=upload_config.validation_timeout + 30,
    result_expires=3600,
)
