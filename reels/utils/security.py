from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Header, status
from fastapi.security import APIKeyHeader
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.config import AuthMode, AuthSettings, JWTSettings
from reels.db.database import get_db
from reels.models.users import Users
from reels.services.user_service import UserService

auth_scheme = APIKeyHeader(name="Authorization", scheme_name="Bearer", auto_error=False)

jwt_settings = JWTSettings()
auth_settings = AuthSettings()


async def verify_client_secret(x_client_secret: Optional[str] = Header(None, alias="X-Client-Secret")) -> str:
    if not x_client_secret or x_client_secret != auth_settings.client_secret:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid client secret",
        )
    return x_client_secret


async def verify_admin_token(x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token")) -> str:
    if not x_admin_token or x_admin_token != auth_settings.admin_token:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin token",
        )
    return x_admin_token


async def create_access_token(to_encode: dict):
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=jwt_settings.access_token_expire_minutes
    )
    payload = dict(to_encode)
    payload.update({"exp": expire, "type": "access"})
    return jwt.encode(payload, jwt_settings.secret_key, algorithm=jwt_settings.algorithm)


async def create_refresh_token(to_encode: dict):
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=jwt_settings.refresh_token_expire_minutes
    )
    payload = dict(to_encode)
    payload.update({"exp": expire, "type": "refresh"})
    return jwt.encode(payload, jwt_settings.refresh_token_secret_key, algorithm=jwt_settings.algorithm)


async def verify_token(token: str, secret_key: str, algorithm: str):
    try:
        return jwt.decode(token, secret_key, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")


async def refresh_access_token(refresh_token: str):
    payload = await verify_token(
        refresh_token,
        jwt_settings.refresh_token_secret_key,
        jwt_settings.algorithm,
    )
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    user_id = payload.get("id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    return await create_access_token({"id": str(user_id)})


async def _user_from_token(token: str, db: AsyncSession) -> Users:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if token.startswith("Bearer "):
        token = token[7:]

    try:
        payload = await verify_token(token, jwt_settings.secret_key, jwt_settings.algorithm)
    except HTTPException:
        raise credentials_exception

    user_id = payload.get("id")
    if not user_id or payload.get("type") != "access":
        raise credentials_exception

    user = await UserService(db).get_user(str(user_id))
    if user is None:
        logger.warning(f"Token references unknown user {user_id}")
        raise credentials_exception

    return user


async def get_current_user(token: Optional[str] = Depends(auth_scheme), db: AsyncSession = Depends(get_db)) -> Users:
    if auth_settings.auth_mode == AuthMode.NONE:
        return await UserService(db).ensure_user(auth_settings.anonymous_user_id)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await _user_from_token(token, db)


async def get_optional_user(token: Optional[str] = Depends(auth_scheme), db: AsyncSession = Depends(get_db)) -> Optional[Users]:
    if auth_settings.auth_mode == AuthMode.NONE:
        return await UserService(db).ensure_user(auth_settings.anonymous_user_id)

    if not token:
        return None

    try:
        return await _user_from_token(token, db)
    except HTTPException:
        return None
