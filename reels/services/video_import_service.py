import json
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from dateutil import parser as date_parser
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.schemas.media import DemoUploadResult, SkippedObject, SyncResult
from reels.schemas.video import VideoMetadataCreate, VideoResponse
from reels.services.storage_service import S3Service
from reels.services.video_service import VideoService


DEMO_VIDEOS: List[Dict[str, Any]] = [
    {
        "url": "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4",
        "title": "Big Buck Bunny Demo",
        "description": "Classic demo video - Big Buck Bunny animation",
        "music_title": "Original Soundtrack",
    },
    {
        "url": "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ElephantsDream.mp4",
        "title": "Elephants Dream",
        "description": "Beautiful animated short film",
        "music_title": "Cinematic Score",
    },
    {
        "url": "https://commondatastorage.googleapis.com/gtv-videos-bucket/sample/ForBiggerBlazes.mp4",
        "title": "For Bigger Blazes",
        "description": "High quality demo video content",
        "music_title": "Epic Background Music",
    },
]


def title_from_key(key: str) -> str:
    """``videos/u1/my_cool-video.mp4`` -> ``My Cool Video``."""
    stem = key.rsplit("/", 1)[-1].split(".", 1)[0] or "Untitled"
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), re.sub(r"[_-]", " ", stem))


class VideoImportService:
    def __init__(
        self,
        db: AsyncSession,
        s3: S3Service,
        tmp_dir: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self.s3 = s3
        self.videos = VideoService(db)
        self.tmp_dir = tmp_dir
        self.transport = transport

    @staticmethod
    def load_catalog(json_file_path: str) -> List[Dict[str, Any]]:
        file_path = Path(json_file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"JSON file not found: {json_file_path}")

        logger.info(f"Loading demo catalog from {json_file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        entries = data.get("videos", []) if isinstance(data, dict) else data
        if not entries:
            logger.warning("No videos found in JSON file")
        return entries

    async def import_demo_videos(self, user_id: str, catalog: Optional[List[Dict[str, Any]]] = None) -> DemoUploadResult:
        catalog = catalog if catalog is not None else DEMO_VIDEOS
        logger.info(f"Starting demo video upload of {len(catalog)} videos for {user_id}")

        uploaded = 0
        saved = []

        async with httpx.AsyncClient(timeout=120.0, follow_redirects=True, transport=self.transport) as client:
            for entry in catalog:
                title = entry.get("title", "Untitled Video")
                try:
                    stem = re.sub(r"\s+", "_", title)
                    file_name = f"{stem}.mp4"
                    with tempfile.TemporaryDirectory(dir=self.tmp_dir) as work_dir:
                        local_path = Path(work_dir) / file_name
                        await self._download(client, entry["url"], local_path)
                        video_url, s3_key = await self.s3.upload_video(local_path, file_name, "video/mp4", user_id)
                    uploaded += 1
                except Exception as e:
                    logger.error(f"Failed to upload demo video {title}: {e}")
                    continue

                try:
                    payload = VideoMetadataCreate(
                        title=title,
                        description=entry.get("description", ""),
                        video_url=video_url,
                        s3_key=s3_key,
                        music_title=entry.get("music_title", "Original Sound"),
                        is_public=True,
                    )
                    video = await self.videos.create_video(
                        user_id, payload, created_at=self._parse_datetime(entry.get("created_at"))
                    )
                    saved.append(VideoResponse.model_validate(video))
                except Exception as e:
                    await self.db.rollback()
                    logger.error(f"Error saving demo video {title} to database: {e}")

        logger.info(f"Demo video upload complete. {uploaded}/{len(catalog)} uploaded, {len(saved)} saved")
        return DemoUploadResult(uploaded=uploaded, saved=len(saved), videos=saved)

    async def sync_s3_videos(self, user_id: str) -> SyncResult:
        s3_videos = await self.s3.list_videos()
        logger.info(f"Found {len(s3_videos)} videos in S3")

        synced = []
        skipped = []

        for s3_video in s3_videos:
            key = s3_video["key"]
            try:
                if await self.videos.get_by_s3_key(key):
                    skipped.append(SkippedObject(key=key, reason="Already exists in database"))
                    continue

                payload = VideoMetadataCreate(
                    title=title_from_key(key),
                    description="Video imported from S3",
                    video_url=s3_video["url"],
                    s3_key=key,
                    music_title="Original Sound",
                    is_public=True,
                )
                video = await self.videos.create_video(user_id, payload)
                synced.append(VideoResponse.model_validate(video))
                logger.info(f"Synced video: {video.title}")
            except Exception as e:
                await self.db.rollback()
                logger.error(f"Error syncing video {key}: {e}")
                skipped.append(SkippedObject(key=key, reason=str(e)))

        return SyncResult(
            total=len(s3_videos),
            synced=len(synced),
            skipped=len(skipped),
            synced_videos=synced,
            skipped_videos=skipped,
        )

    @staticmethod
    async def _download(client: httpx.AsyncClient, url: str, destination: Path) -> None:
        logger.debug(f"Downloading {url}")
        async with client.stream("GET", url) as response:
            response.raise_for_status()
            with open(destination, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)

    @staticmethod
    def _parse_datetime(value: Any) -> Optional[datetime]:
        if value is None or isinstance(value, datetime):
            return value
        return date_parser.parse(value)
