from typing import Optional, Tuple

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.exceptions import NotFoundError, ValidationFailed
from reels.models.follows import Follow
from reels.models.users import Users
from reels.models.videos import Video
from reels.schemas.social import FollowToggleResponse
from reels.schemas.user import UserProfileResponse, UserResponse, UserUpsert


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> Optional[Users]:
        result = await self.db.execute(
            select(Users).where(Users.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_or_404(self, user_id: str) -> Users:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def upsert_user(self, payload: UserUpsert) -> Tuple[Users, bool]:
        user = await self.get_user(payload.id)

        if user:
            for field, value in payload.model_dump(exclude={"id"}, exclude_unset=True).items():
                setattr(user, field, value)
            await self.db.commit()
            await self.db.refresh(user)
            logger.info(f"Updated user {user.id} from {user.provider}")
            return user, False

        new_user = Users(
            id=payload.id,
            email=payload.email,
            name=payload.name,
            username=payload.username or f"user_{payload.id}",
            profile_image_url=payload.profile_image_url,
            provider=payload.provider,
        )

        self.db.add(new_user)
        await self.db.commit()
        await self.db.refresh(new_user)

        logger.info(f"Created new user {new_user.id} from {new_user.provider}")

        return new_user, True

    async def ensure_user(self, user_id: str, provider: str = "anonymous") -> Users:
        user = await self.get_user(user_id)
        if user:
            return user

        user, _ = await self.upsert_user(
            UserUpsert(id=user_id, name=user_id.capitalize(), provider=provider)
        )
        return user

    async def get_profile(self, user_id: str, viewer_id: Optional[str] = None) -> UserProfileResponse:
        user = await self.get_user_or_404(user_id)

        follower_count = await self._count(
            select(func.count(Follow.id)).where(Follow.following_id == user_id)
        )
        following_count = await self._count(
            select(func.count(Follow.id)).where(Follow.follower_id == user_id)
        )
        video_count = await self._count(
            select(func.count(Video.id)).where(Video.user_id == user_id, Video.is_public.is_(True))
        )

        is_following = False
        if viewer_id and viewer_id != user_id:
            is_following = bool(await self._count(
                select(func.count(Follow.id)).where(
                    Follow.follower_id == viewer_id,
                    Follow.following_id == user_id,
                )
            ))

        return UserProfileResponse(
            **UserResponse.model_validate(user).model_dump(),
            follower_count=follower_count,
            following_count=following_count,
            video_count=video_count,
            is_following=is_following,
        )

    async def toggle_follow(self, follower: Users, following_id: str) -> FollowToggleResponse:
        if follower.id == following_id:
            raise ValidationFailed("Cannot follow yourself")

        await self.get_user_or_404(following_id)

        result = await self.db.execute(
            select(Follow.id).where(
                Follow.follower_id == follower.id,
                Follow.following_id == following_id,
            )
        )

        if result.scalar_one_or_none() is not None:
            await self.db.execute(
                delete(Follow).where(
                    Follow.follower_id == follower.id,
                    Follow.following_id == following_id,
                )
            )
            following = False
        else:
            self.db.add(Follow(follower_id=follower.id, following_id=following_id))
            following = True

        await self.db.commit()
        logger.info(f"User {follower.id} {'followed' if following else 'unfollowed'} {following_id}")
        return FollowToggleResponse(following=following)

    async def _count(self, stmt) -> int:
        result = await self.db.execute(stmt)
        count = result.scalar_one()
        return int(count) if count is not None else 0
