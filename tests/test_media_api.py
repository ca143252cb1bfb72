"""
Tests for presigned URLs, playback URLs, health checks and admin endpoints.
"""

from unittest.mock import MagicMock

import httpx
import pytest
from botocore.exceptions import ClientError

from reels.services.storage_service import S3Service


@pytest.mark.integration
@pytest.mark.media
class TestPresignedUrls:
    """Test direct-upload URL generation."""

    async def test_generate_presigned_url(self, client: httpx.AsyncClient, auth_headers, s3_client):
        response = await client.post(
            "/api/generate-presigned-url",
            headers=auth_headers,
            json={"file_name": "Lesson.MOV", "file_type": "video/quicktime"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["upload_url"].startswith("https://test-bucket.s3.amazonaws.com/signed")
        assert data["key"].startswith("videos/user-alice/")
        assert data["key"].endswith(".mov")
        assert data["public_url"] == f"https://test-bucket.s3.us-east-1.amazonaws.com/{data['key']}"

        method, = s3_client.generate_presigned_url.call_args.args
        params = s3_client.generate_presigned_url.call_args.kwargs["Params"]
        assert method == "put_object"
        assert params["ContentType"] == "video/quicktime"
        assert params["Tagging"] == "public=true"
        assert s3_client.generate_presigned_url.call_args.kwargs["ExpiresIn"] == 3600

    async def test_presigned_url_rejects_non_video(self, client: httpx.AsyncClient, auth_headers, s3_client):
        response = await client.post(
            "/api/generate-presigned-url",
            headers=auth_headers,
            json={"file_name": "notes.pdf", "file_type": "application/pdf"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Only video files are allowed"
        s3_client.generate_presigned_url.assert_not_called()

    async def test_presigned_url_requires_fields(self, client: httpx.AsyncClient, auth_headers):
        response = await client.post("/api/generate-presigned-url", headers=auth_headers, json={"file_name": "a.mp4"})

        assert response.status_code == 400


@pytest.mark.integration
@pytest.mark.media
class TestVideoUrls:
    """Test playback URL resolution."""

    async def test_external_url_passthrough(self, client: httpx.AsyncClient):
        response = await client.post("/api/get-video-url", json={"video_url": "https://videos.example.org/a.mp4"})

        assert response.status_code == 200
        assert response.json() == {"url": "https://videos.example.org/a.mp4"}

    async def test_s3_key_served_from_cloudfront(self, client: httpx.AsyncClient):
        response = await client.post(
            "/api/get-video-url",
            json={
                "s3_key": "videos/u1/abc.mp4",
                "video_url": "https://test-bucket.s3.us-east-1.amazonaws.com/videos/u1/abc.mp4",
            },
        )

        assert response.json() == {"url": "https://cdn.example.com/videos/u1/abc.mp4"}

    async def test_stored_upload_url_served_from_cloudfront(self, client: httpx.AsyncClient, s3_service):
        key = s3_service.build_key("user-alice", "lesson.mp4")

        response = await client.post(
            "/api/get-video-url",
            json={"s3_key": key, "video_url": s3_service.public_url(key)},
        )

        assert response.json() == {"url": f"https://cdn.example.com/{key}"}

    async def test_s3_fallback_without_cloudfront(self, client: httpx.AsyncClient, s3_service):
        s3_service.settings.cloudfront_domain = None

        response = await client.post("/api/get-video-url", json={"s3_key": "videos/u1/abc.mp4"})

        assert response.json() == {"url": "https://test-bucket.s3.us-east-1.amazonaws.com/videos/u1/abc.mp4"}

    async def test_requires_key_or_url(self, client: httpx.AsyncClient):
        response = await client.post("/api/get-video-url", json={})

        assert response.status_code == 400

    async def test_s3_url_without_key(self, client: httpx.AsyncClient):
        response = await client.post(
            "/api/get-video-url",
            json={"video_url": "https://test-bucket.s3.us-east-1.amazonaws.com/videos/u1/abc.mp4"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Unable to generate video URL"


@pytest.mark.unit
@pytest.mark.media
class TestS3UrlDetection:
    """Test recognition of S3 object URLs."""

    @pytest.mark.parametrize("url,expected", [
        ("https://test-bucket.s3.us-east-1.amazonaws.com/videos/u1/a.mp4", True),
        ("https://test-bucket.s3.amazonaws.com/videos/u1/a.mp4", True),
        ("https://s3.eu-west-1.amazonaws.com/test-bucket/a.mp4", True),
        ("https://test-bucket.s3-us-west-2.amazonaws.com/a.mp4", True),
        ("https://cdn.example.com/videos/u1/a.mp4", False),
        ("https://dynamodb.us-east-1.amazonaws.com/", False),
        ("https://example.org/?next=s3.amazonaws.com", False),
    ])
    def test_is_s3_url(self, url, expected):
        assert S3Service.is_s3_url(url) is expected


@pytest.mark.integration
@pytest.mark.media
class TestHealth:
    """Test liveness and dependency health endpoints."""

    async def test_liveness(self, client: httpx.AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_s3_health(self, client: httpx.AsyncClient, s3_client):
        response = await client.get("/api/health/s3")

        assert response.json() == {"s3_connected": True, "bucket": "test-bucket", "region": "us-east-1"}
        s3_client.head_bucket.assert_called_once_with(Bucket="test-bucket")

    async def test_s3_health_when_bucket_unreachable(self, client: httpx.AsyncClient, s3_client):
        s3_client.head_bucket.side_effect = ClientError(
            {"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadBucket"
        )

        response = await client.get("/api/health/s3")

        assert response.status_code == 200
        assert response.json()["s3_connected"] is False

    async def test_ai_health(self, client: httpx.AsyncClient):
        response = await client.get("/api/health/ai")

        assert response.json() == {
            "deepgram_configured": True,
            "classifier_configured": True,
            "educational_validation_enabled": True,
        }


@pytest.mark.integration
@pytest.mark.media
class TestAdmin:
    """Test admin maintenance endpoints."""

    async def test_admin_requires_token(self, client: httpx.AsyncClient):
        response = await client.post("/api/admin/configure-s3-cors")

        assert response.status_code == 403

    async def test_configure_cors(self, client: httpx.AsyncClient, admin_headers, s3_client):
        response = await client.post("/api/admin/configure-s3-cors", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "S3 CORS configured successfully"
        rules = s3_client.put_bucket_cors.call_args.kwargs["CORSConfiguration"]["CORSRules"]
        assert "PUT" in rules[0]["AllowedMethods"]

    async def test_configure_cors_failure(self, client: httpx.AsyncClient, admin_headers, s3_client):
        s3_client.put_bucket_cors.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Denied"}}, "PutBucketCors"
        )

        response = await client.post("/api/admin/configure-s3-cors", headers=admin_headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to configure S3 CORS"

    async def test_sync_s3_videos(self, client: httpx.AsyncClient, admin_headers, s3_client):
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [
                {"Key": "videos/demo/my_cool-video.mp4", "Size": 1024},
                {"Key": "videos/demo/notes.txt", "Size": 10},
            ]},
            {"Contents": [{"Key": "videos/demo/second_take.webm", "Size": 2048}]},
        ]
        s3_client.get_paginator.return_value = paginator

        response = await client.post("/api/admin/sync-s3-videos", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["synced"] == 2
        assert {video["title"] for video in data["synced_videos"]} == {"My Cool Video", "Second Take"}
        assert all(video["user_id"] == "anonymous" for video in data["synced_videos"])

        again = await client.post("/api/admin/sync-s3-videos", headers=admin_headers)

        assert again.json()["synced"] == 0
        assert again.json()["skipped"] == 2
        assert again.json()["skipped_videos"][0]["reason"] == "Already exists in database"

    async def test_cloudfront_check(self, client: httpx.AsyncClient, admin_headers, s3_service, monkeypatch):
        async def unreachable(key):
            return False

        monkeypatch.setattr(s3_service, "test_cloudfront_access", unreachable)

        response = await client.post("/api/admin/test-cloudfront", headers=admin_headers, json={})

        assert response.status_code == 200
        data = response.json()
        assert data["accessible"] is False
        assert data["test_url"] == "https://cdn.example.com/videos/demo/demo-test.mp4"
        assert "propagating" in data["note"]
