from fastapi import APIRouter
from reels.api import admin, auth, health, media, users, videos

api_router = APIRouter(prefix="/api")

api_router.include_router(auth.auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(videos.videos_router, prefix="/videos", tags=["videos"])
api_router.include_router(users.users_router, prefix="/users", tags=["users"])
api_router.include_router(media.media_router, tags=["media"])
api_router.include_router(health.health_router, prefix="/health", tags=["health"])
api_router.include_router(admin.admin_router, prefix="/admin", tags=["admin"])

__all__ = ["api_router"]
