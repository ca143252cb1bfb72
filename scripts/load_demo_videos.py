import asyncio
import sys
from pathlib import Path

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from reels.core.config import AWSSettings, AuthSettings, UploadSettings
from reels.db.database import get_async_sessionmaker, init_db
from reels.services.storage_service import S3Service
from reels.services.user_service import UserService
from reels.services.video_import_service import VideoImportService


async def main():
    catalog = None
    if len(sys.argv) > 1:
        json_file_path = sys.argv[1]
        if not Path(json_file_path).exists():
            logger.error(f"File not found: {json_file_path}")
            sys.exit(1)
        catalog = VideoImportService.load_catalog(json_file_path)

    s3 = S3Service(AWSSettings())
    if not s3.is_configured():
        logger.error("S3 is not configured, set S3_BUCKET_NAME and AWS credentials")
        sys.exit(1)

    logger.info("Starting demo video loading process...")

    try:
        await init_db()
        sessionmaker = get_async_sessionmaker()

        async with sessionmaker() as session:
            owner = await UserService(session).ensure_user(AuthSettings().anonymous_user_id)
            importer = VideoImportService(session, s3, tmp_dir=UploadSettings().upload_tmp_dir)
            result = await importer.import_demo_videos(owner.id, catalog)

            logger.success(
                f"Demo video loading completed!\n"
                f"  Videos uploaded: {result.uploaded}\n"
                f"  Videos saved: {result.saved}"
            )

    except Exception as e:
        logger.exception(f"Error loading demo videos: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
