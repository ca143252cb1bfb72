"""
Pytest configuration and shared fixtures for the Edureels API tests.
"""

import os
import tempfile

os.environ.update({
    "APP_NAME": "Edureels Test",
    "APP_PORT": "8000",
    "LOG_FILE": os.path.join(tempfile.gettempdir(), "edureels-test.log"),
    "DATABASE_URL": "sqlite+aiosqlite://",
    "SECRET_KEY": "test_access_secret_key_for_testing_only_0123",
    "REFRESH_TOKEN_SECRET_KEY": "test_refresh_secret_key_for_testing_only_0123",
    "AUTH_MODE": "jwt",
    "AUTH_CLIENT_SECRET": "test-client-secret-0123",
    "ADMIN_TOKEN": "test-admin-token-0123",
    "VALIDATION_BACKEND": "inline",
    "SOCIAL_STORE": "sql",
    "UPLOAD_TMP_DIR": os.path.join(tempfile.gettempdir(), "edureels-test-uploads"),
})
for name in ("S3_BUCKET_NAME", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "CLOUDFRONT_DOMAIN",
             "DEEPGRAM_API_KEY", "GEMINI_API_KEY"):
    os.environ.pop(name, None)

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Tuple
from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from reels.api.deps import get_s3_service, get_upload_settings, get_validation_runner
from reels.core.config import AWSSettings, UploadSettings
from reels.db.database import Base, get_db
from reels.main import app
from reels.models.users import Users
from reels.models.videos import Video
from reels.schemas.video import EducationalAnalysis, VideoValidationResult
from reels.services.storage_service import S3Service
from reels.services.validation_runner import ValidationRunner
from reels.utils.security import create_access_token


# Database setup
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def engine():
    """
    Fresh in-memory SQLite database for each test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def sessionmaker(engine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(sessionmaker) -> AsyncSession:
    async with sessionmaker() as session:
        yield session


class StubValidationRunner(ValidationRunner):
    """Returns a preset validation result instead of calling ffprobe and the AI services."""

    def __init__(self):
        self.result = VideoValidationResult(
            duration=42,
            educational_analysis=EducationalAnalysis(
                is_educational=True,
                topic="Photosynthesis",
                confidence=0.93,
                reason="Explains how plants make food",
            ),
            transcript="Plants turn light into chemical energy.",
        )
        self.calls = []

    async def run(self, file_path: Path, file_size: int, mime_type: str) -> VideoValidationResult:
        self.calls.append((file_path, file_size, mime_type))
        return self.result.model_copy(update={"file_size": file_size})

    def ai_status(self) -> Tuple[bool, bool]:
        return True, True


def make_aws_settings(**overrides) -> AWSSettings:
    values = {
        "S3_BUCKET_NAME": "test-bucket",
        "AWS_ACCESS_KEY_ID": "test-key",
        "AWS_SECRET_ACCESS_KEY": "test-secret",
        "AWS_REGION": "us-east-1",
        "CLOUDFRONT_DOMAIN": "cdn.example.com",
    }
    values.update(overrides)
    return AWSSettings(**values)


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://test-bucket.s3.amazonaws.com/signed?X-Amz-Signature=abc"
    return client


@pytest.fixture
def s3_service(s3_client) -> S3Service:
    return S3Service(make_aws_settings(), client=s3_client)


@pytest.fixture
def validation_runner() -> StubValidationRunner:
    return StubValidationRunner()


@pytest.fixture
def upload_settings(tmp_path) -> UploadSettings:
    return UploadSettings(UPLOAD_TMP_DIR=str(tmp_path / "uploads"))


@pytest.fixture
async def client(sessionmaker, s3_service, validation_runner, upload_settings):
    """
    HTTP client bound to the app with the database and external services overridden.
    """
    async def override_get_db():
        async with sessionmaker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_s3_service] = lambda: s3_service
    app.dependency_overrides[get_validation_runner] = lambda: validation_runner
    app.dependency_overrides[get_upload_settings] = lambda: upload_settings

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# User fixtures
@pytest.fixture
async def test_user(db_session: AsyncSession) -> Users:
    user = Users(
        id="user-alice",
        email="alice@example.com",
        name="Alice",
        username="alice",
        provider="oidc",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user2(db_session: AsyncSession) -> Users:
    user = Users(
        id="user-bob",
        email="bob@example.com",
        name="Bob",
        username="bob",
        provider="oidc",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def auth_headers(test_user: Users) -> Dict[str, str]:
    token = await create_access_token({"id": test_user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def auth_headers2(test_user2: Users) -> Dict[str, str]:
    token = await create_access_token({"id": test_user2.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-Admin-Token": os.environ["ADMIN_TOKEN"]}


# Video fixtures
async def create_test_video(db: AsyncSession, user: Users, **fields) -> Video:
    values = {
        "title": "Test Video",
        "description": "A short lesson",
        "video_url": "https://cdn.example.com/videos/test.mp4",
        "is_public": True,
        "created_at": datetime.now(timezone.utc),
    }
    values.update(fields)
    video = Video(user_id=user.id, **values)
    db.add(video)
    await db.commit()
    await db.refresh(video)
    return video


@pytest.fixture
async def test_video(db_session: AsyncSession, test_user: Users) -> Video:
    return await create_test_video(db_session, test_user, title="Intro to Algebra")


@pytest.fixture
async def feed_videos(db_session: AsyncSession, test_user: Users) -> list:
    """
    Three public videos an hour apart plus one private video.
    """
    now = datetime.now(timezone.utc)
    videos = []
    for i in range(3):
        videos.append(await create_test_video(
            db_session,
            test_user,
            title=f"Lesson {i}",
            created_at=now - timedelta(hours=3 - i),
        ))
    videos.append(await create_test_video(db_session, test_user, title="Private draft", is_public=False))
    return videos
