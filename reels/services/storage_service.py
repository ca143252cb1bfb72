import asyncio
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from reels.core.config import AWSSettings
from reels.core.exceptions import NotConfiguredError, StorageError


VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".wmv", ".webm", ".m4v")


class S3Service:
    def __init__(self, settings: AWSSettings, client=None):
        self.settings = settings
        self.bucket = settings.s3_bucket_name
        self.region = settings.aws_region
        self.client = client or boto3.client(
            "s3",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.aws_endpoint_url,
        )

    def is_configured(self) -> bool:
        return self.settings.s3_configured

    def _require_configured(self) -> None:
        if not self.is_configured():
            raise NotConfiguredError("S3 is not configured")

    @staticmethod
    def build_key(user_id: str, file_name: str) -> str:
        extension = Path(file_name).suffix.lstrip(".").lower() or "mp4"
        return f"videos/{user_id}/{secrets.token_urlsafe(16)}.{extension}"

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    @staticmethod
    def is_s3_url(url: str) -> bool:
        """Virtual-hosted or path-style S3 URL, any region."""
        host = (urlparse(url).hostname or "").lower()
        if not host.endswith(".amazonaws.com"):
            return False
        labels = host.split(".")
        return any(label == "s3" or label.startswith("s3-") for label in labels)

    def cloudfront_url(self, key: str) -> str:
        if not self.settings.cloudfront_domain:
            logger.warning("CloudFront domain not configured, falling back to S3 URL")
            return self.public_url(key)
        return f"https://{self.settings.cloudfront_domain}/{key}"

    async def upload_video(
        self,
        file_path: Path,
        file_name: str,
        content_type: str,
        user_id: str,
    ) -> Tuple[str, str]:
        self._require_configured()
        key = self.build_key(user_id, file_name)

        extra_args = {
            "ContentType": content_type,
            "Metadata": {
                "userId": user_id,
                "originalName": file_name,
                "uploadedAt": datetime.now(timezone.utc).isoformat(),
            },
        }

        try:
            await asyncio.to_thread(
                self.client.upload_file, str(file_path), self.bucket, key, ExtraArgs=extra_args
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload error for {key}: {e}")
            raise StorageError("Failed to upload video to S3") from e

        url = self.public_url(key)
        logger.info(f"Uploaded {file_name} to s3://{self.bucket}/{key}")
        return url, key

    def presigned_upload_url(self, file_name: str, file_type: str, user_id: str) -> Dict[str, str]:
        self._require_configured()
        key = self.build_key(user_id, file_name)

        try:
            upload_url = self.client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.bucket,
                    "Key": key,
                    "ContentType": file_type,
                    "Tagging": "public=true",
                    "Metadata": {
                        "uploaded-by": user_id,
                        "upload-date": datetime.now(timezone.utc).isoformat(),
                    },
                },
                ExpiresIn=self.settings.upload_url_expires,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Presigned URL error for {key}: {e}")
            raise StorageError("Failed to generate presigned URL") from e

        return {"upload_url": upload_url, "key": key, "public_url": self.public_url(key)}

    async def test_connection(self) -> bool:
        if not self.is_configured():
            return False
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"S3 connection test failed: {e}")
            return False

    async def configure_cors(self, allowed_origins: Optional[List[str]] = None) -> None:
        self._require_configured()
        cors_configuration = {
            "CORSRules": [
                {
                    "AllowedOrigins": allowed_origins or ["*"],
                    "AllowedMethods": ["PUT", "POST", "GET", "HEAD"],
                    "AllowedHeaders": ["*"],
                    "ExposeHeaders": ["ETag"],
                    "MaxAgeSeconds": 3600,
                }
            ]
        }
        try:
            await asyncio.to_thread(
                self.client.put_bucket_cors,
                Bucket=self.bucket,
                CORSConfiguration=cors_configuration,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to configure S3 CORS: {e}")
            raise StorageError("Failed to configure S3 CORS") from e
        logger.info(f"S3 CORS configuration updated for bucket {self.bucket}")

    async def list_videos(self, prefix: str = "videos/") -> List[Dict]:
        self._require_configured()
        return await asyncio.to_thread(self._list_videos, prefix)

    def _list_videos(self, prefix: str) -> List[Dict]:
        objects = []
        paginator = self.client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    key = obj["Key"]
                    if not key.lower().endswith(VIDEO_EXTENSIONS):
                        continue
                    objects.append({
                        "key": key,
                        "url": self.public_url(key),
                        "size": obj.get("Size", 0),
                        "last_modified": obj.get("LastModified"),
                    })
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list S3 videos under {prefix}: {e}")
            raise StorageError("Failed to list S3 videos") from e
        return objects

    async def test_cloudfront_access(self, key: str) -> bool:
        if not self.settings.cloudfront_domain:
            return False
        url = self.cloudfront_url(key)
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.head(url)
            return response.is_success
        except httpx.HTTPError as e:
            logger.warning(f"CloudFront access test failed for {url}: {e}")
            return False
