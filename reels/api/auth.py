from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.db.database import get_db
from reels.models.users import Users
from reels.schemas.token import LoginResponse, RefreshRequest, Token
from reels.schemas.user import UserResponse, UserUpsert
from reels.services.user_service import UserService
from reels.utils.security import (
    create_access_token,
    create_refresh_token,
    get_current_user,
    refresh_access_token,
    verify_client_secret,
)

auth_router = APIRouter()


@auth_router.post("/login", response_model=LoginResponse)
async def login(
    payload: UserUpsert,
    db: AsyncSession = Depends(get_db),
    client_secret: str = Depends(verify_client_secret),
):
    user, is_new = await UserService(db).upsert_user(payload)
    logger.info(f"Login for user {user.id} (new={is_new})")

    claims = {"id": user.id}
    return LoginResponse(
        access_token=await create_access_token(claims),
        refresh_token=await create_refresh_token(claims),
        user=UserResponse.model_validate(user),
    )


@auth_router.post("/refresh", response_model=Token)
async def refresh(payload: RefreshRequest):
    access_token = await refresh_access_token(payload.refresh_token)
    return Token(access_token=access_token)


@auth_router.get("/user", response_model=UserResponse)
async def read_current_user(user: Users = Depends(get_current_user)):
    return UserResponse.model_validate(user)
