from typing import List
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.exceptions import ValidationFailed
from reels.models.users import Users
from reels.schemas.social import CommentResponse, LikeToggleResponse
from reels.services.social_store import SocialStore
from reels.services.video_service import VideoService


class EngagementService:
    """Likes and comments.

    Counter updates are plain ``SET n = n + 1`` statements with no row lock,
    so concurrent toggles on the same video can race.
    """

    def __init__(self, db: AsyncSession, social_store: SocialStore):
        self.db = db
        self.social_store = social_store
        self.videos = VideoService(db, social_store)

    async def toggle_like(self, user: Users, video_id: UUID) -> LikeToggleResponse:
        await self.videos.get_video(video_id)

        try:
            if await self.social_store.is_liked(user.id, video_id):
                await self.social_store.remove_like(user.id, video_id)
                await self.videos.adjust_counter(video_id, "like_count", -1)
                liked = False
            else:
                await self.social_store.add_like(user, video_id)
                await self.videos.adjust_counter(video_id, "like_count", 1)
                liked = True
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        like_count = await self.videos.counter_value(video_id, "like_count")
        logger.info(f"User {user.id} {'liked' if liked else 'unliked'} video {video_id}")
        return LikeToggleResponse(liked=liked, like_count=like_count)

    async def list_comments(self, video_id: UUID, limit: int = 50, offset: int = 0) -> List[CommentResponse]:
        await self.videos.get_video(video_id)
        return await self.social_store.list_comments(video_id, limit=limit, offset=offset)

    async def add_comment(self, user: Users, video_id: UUID, content: str) -> CommentResponse:
        await self.videos.get_video(video_id)

        content = content.strip()
        if not content:
            raise ValidationFailed("Comment content must not be blank")

        try:
            comment = await self.social_store.add_comment(user, video_id, content)
            await self.videos.adjust_counter(video_id, "comment_count", 1)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"User {user.id} commented on video {video_id}")
        return comment
