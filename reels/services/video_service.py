from datetime import datetime
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.exceptions import NotFoundError, ValidationFailed
from reels.models.videos import Video
from reels.schemas.user import UserResponse
from reels.schemas.video import VideoMetadataCreate, VideoResponse, VideoWithUser
from reels.services.social_store import SocialStore


COUNTERS = ("view_count", "like_count", "comment_count", "share_count")


class VideoService:
    def __init__(self, db: AsyncSession, social_store: Optional[SocialStore] = None):
        self.db = db
        self.social_store = social_store

    async def list_feed(self, limit: int = 20, offset: int = 0, viewer_id: Optional[str] = None) -> List[VideoWithUser]:
        result = await self.db.execute(
            select(Video)
            .where(Video.is_public.is_(True))
            .order_by(Video.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        videos = result.unique().scalars().all()
        return await self._with_users(videos, viewer_id)

    async def list_user_videos(self, user_id: str, limit: int = 50, offset: int = 0, viewer_id: Optional[str] = None) -> List[VideoWithUser]:
        result = await self.db.execute(
            select(Video)
            .where(Video.user_id == user_id, Video.is_public.is_(True))
            .order_by(Video.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        videos = result.unique().scalars().all()
        return await self._with_users(videos, viewer_id)

    async def get_video(self, video_id: UUID) -> Video:
        result = await self.db.execute(
            select(Video).where(Video.id == video_id).execution_options(populate_existing=True)
        )
        video = result.unique().scalar_one_or_none()
        if video is None:
            raise NotFoundError("Video not found")
        return video

    async def get_video_with_user(self, video_id: UUID, viewer_id: Optional[str] = None) -> VideoWithUser:
        video = await self.get_video(video_id)
        items = await self._with_users([video], viewer_id)
        if not items:
            raise NotFoundError("Video not found")
        return items[0]

    async def get_by_s3_key(self, s3_key: str) -> Optional[Video]:
        result = await self.db.execute(
            select(Video).where(Video.s3_key == s3_key)
        )
        return result.unique().scalar_one_or_none()

    async def create_video(self, user_id: str, payload: VideoMetadataCreate, created_at: Optional[datetime] = None) -> Video:
        video = Video(user_id=user_id, **payload.model_dump())
        if created_at is not None:
            video.created_at = created_at

        self.db.add(video)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Integrity error creating video {payload.s3_key}: {e}")
            raise ValidationFailed("Video already registered") from e
        await self.db.refresh(video)

        logger.info(f"Created video {video.id} for user {user_id}: {video.title}")
        return video

    async def increment_view_count(self, video_id: UUID) -> int:
        await self.get_video(video_id)
        await self.adjust_counter(video_id, "view_count", 1)
        await self.db.commit()
        return await self.counter_value(video_id, "view_count")

    async def adjust_counter(self, video_id: UUID, counter: str, delta: int) -> None:
        if counter not in COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")

        column = getattr(Video, counter)
        await self.db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values({counter: column + delta})
        )

    async def counter_value(self, video_id: UUID, counter: str) -> int:
        result = await self.db.execute(
            select(getattr(Video, counter)).where(Video.id == video_id)
        )
        return int(result.scalar_one() or 0)

    async def _with_users(self, videos: List[Video], viewer_id: Optional[str]) -> List[VideoWithUser]:
        liked = set()
        if viewer_id and self.social_store and videos:
            liked = await self.social_store.liked_video_ids(viewer_id, [video.id for video in videos])

        items = []
        for video in videos:
            if video.user is None:
                logger.warning(f"Video {video.id} has no owner record, skipping")
                continue
            items.append(VideoWithUser(
                **VideoResponse.model_validate(video).model_dump(),
                user=UserResponse.model_validate(video.user),
                is_liked=video.id in liked,
            ))
        return items
