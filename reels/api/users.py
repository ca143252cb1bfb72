from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reels.db.database import get_db
from reels.models.users import Users
from reels.schemas.social import FollowToggleResponse
from reels.schemas.user import UserProfileResponse
from reels.services.user_service import UserService
from reels.utils.security import get_current_user, get_optional_user

users_router = APIRouter()


@users_router.get("/{user_id}", response_model=UserProfileResponse)
async def get_profile(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    viewer: Optional[Users] = Depends(get_optional_user),
):
    return await UserService(db).get_profile(user_id, viewer_id=viewer.id if viewer else None)


@users_router.post("/{user_id}/follow", response_model=FollowToggleResponse)
async def toggle_follow(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return await UserService(db).toggle_follow(user, user_id)
