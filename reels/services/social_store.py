import asyncio
import secrets
import time
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set
from uuid import UUID

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import ClientError
from dateutil.parser import isoparse
from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reels.core.config import AWSSettings
from reels.models.comments import Comment
from reels.models.likes import Like
from reels.models.users import Users
from reels.schemas.social import CommentAuthor, CommentResponse


class SocialStore:
    """Storage for likes and comments.

    Video counters are not maintained here; callers update them on the
    relational ``videos`` row after a store operation succeeds.
    """

    async def is_liked(self, user_id: str, video_id: UUID) -> bool:
        raise NotImplementedError

    async def add_like(self, user: Users, video_id: UUID) -> None:
        raise NotImplementedError

    async def remove_like(self, user_id: str, video_id: UUID) -> None:
        raise NotImplementedError

    async def liked_video_ids(self, user_id: str, video_ids: Iterable[UUID]) -> Set[UUID]:
        raise NotImplementedError

    async def add_comment(self, user: Users, video_id: UUID, content: str) -> CommentResponse:
        raise NotImplementedError

    async def list_comments(self, video_id: UUID, limit: int = 50, offset: int = 0) -> List[CommentResponse]:
        raise NotImplementedError


class SqlSocialStore(SocialStore):
    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_liked(self, user_id: str, video_id: UUID) -> bool:
        result = await self.db.execute(
            select(Like.id).where(Like.user_id == user_id, Like.video_id == video_id)
        )
        return result.scalar_one_or_none() is not None

    async def add_like(self, user: Users, video_id: UUID) -> None:
        self.db.add(Like(user_id=user.id, video_id=video_id))
        await self.db.flush()

    async def remove_like(self, user_id: str, video_id: UUID) -> None:
        await self.db.execute(
            delete(Like).where(Like.user_id == user_id, Like.video_id == video_id)
        )

    async def liked_video_ids(self, user_id: str, video_ids: Iterable[UUID]) -> Set[UUID]:
        video_ids = list(video_ids)
        if not video_ids:
            return set()
        result = await self.db.execute(
            select(Like.video_id).where(Like.user_id == user_id, Like.video_id.in_(video_ids))
        )
        return set(result.scalars().all())

    async def add_comment(self, user: Users, video_id: UUID, content: str) -> CommentResponse:
        comment = Comment(video_id=video_id, user_id=user.id, content=content)
        self.db.add(comment)
        await self.db.flush()
        return self._to_response(comment, user)

    async def list_comments(self, video_id: UUID, limit: int = 50, offset: int = 0) -> List[CommentResponse]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.video_id == video_id)
            .order_by(Comment.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return [self._to_response(comment, comment.user) for comment in result.unique().scalars().all()]

    @staticmethod
    def _to_response(comment: Comment, user: Optional[Users]) -> CommentResponse:
        return CommentResponse(
            id=str(comment.id),
            video_id=str(comment.video_id),
            user_id=comment.user_id,
            content=comment.content,
            created_at=comment.created_at,
            user=CommentAuthor(
                id=user.id,
                name=user.name,
                email=user.email,
                profile_image_url=user.profile_image_url,
            ) if user else None,
        )


class DynamoSocialStore(SocialStore):
    """Likes and comments kept in two DynamoDB tables keyed by ``id``.

    Likes use ``"{video_id}#{user_id}"`` as their key so a user can like a
    video once. Reads by video are scans with a filter expression.

    Talks to the low-level client, which may be shared between executor
    threads, and converts items with the boto3 type (de)serializers.
    """

    def __init__(self, settings: AWSSettings, client=None):
        self.settings = settings
        self.client = client or dynamodb_client(settings)
        self.likes_table = settings.likes_table
        self.comments_table = settings.comments_table
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    @staticmethod
    def like_key(video_id: UUID, user_id: str) -> str:
        return f"{video_id}#{user_id}"

    def _key(self, key: str) -> dict:
        return {"id": {"S": key}}

    def _serialize(self, item: dict) -> dict:
        return {name: self._serializer.serialize(value) for name, value in item.items()}

    def _deserialize(self, item: dict) -> dict:
        return {name: self._deserializer.deserialize(value) for name, value in item.items()}

    async def is_liked(self, user_id: str, video_id: UUID) -> bool:
        response = await asyncio.to_thread(
            self.client.get_item,
            TableName=self.likes_table,
            Key=self._key(self.like_key(video_id, user_id)),
        )
        return "Item" in response

    async def add_like(self, user: Users, video_id: UUID) -> None:
        item = {
            "id": self.like_key(video_id, user.id),
            "videoId": str(video_id),
            "userId": user.id,
            "userEmail": user.email or "",
            "userName": user.name or "",
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        await asyncio.to_thread(
            self.client.put_item, TableName=self.likes_table, Item=self._serialize(item)
        )

    async def remove_like(self, user_id: str, video_id: UUID) -> None:
        await asyncio.to_thread(
            self.client.delete_item,
            TableName=self.likes_table,
            Key=self._key(self.like_key(video_id, user_id)),
        )

    async def liked_video_ids(self, user_id: str, video_ids: Iterable[UUID]) -> Set[UUID]:
        liked = set()
        for video_id in video_ids:
            if await self.is_liked(user_id, video_id):
                liked.add(video_id)
        return liked

    async def add_comment(self, user: Users, video_id: UUID, content: str) -> CommentResponse:
        item = {
            "id": f"{int(time.time() * 1000)}-{secrets.token_hex(5)}",
            "videoId": str(video_id),
            "userId": user.id,
            "userEmail": user.email or "",
            "userName": user.name or "",
            "content": content,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        if user.profile_image_url:
            item["userProfileImage"] = user.profile_image_url

        await asyncio.to_thread(
            self.client.put_item, TableName=self.comments_table, Item=self._serialize(item)
        )
        logger.debug(f"Stored comment {item['id']} for video {video_id} in DynamoDB")
        return self._to_response(item)

    async def list_comments(self, video_id: UUID, limit: int = 50, offset: int = 0) -> List[CommentResponse]:
        items = await asyncio.to_thread(self._scan_by_video, self.comments_table, str(video_id))
        items.sort(key=lambda item: parse_timestamp(item["createdAt"]), reverse=True)
        return [self._to_response(item) for item in items[offset:offset + limit]]

    def _scan_by_video(self, table_name: str, video_id: str) -> List[dict]:
        items = []
        kwargs = {
            "TableName": table_name,
            "FilterExpression": "videoId = :video_id",
            "ExpressionAttributeValues": {":video_id": {"S": video_id}},
        }
        while True:
            response = self.client.scan(**kwargs)
            items.extend(self._deserialize(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    @staticmethod
    def _to_response(item: dict) -> CommentResponse:
        return CommentResponse(
            id=item["id"],
            video_id=item["videoId"],
            user_id=item["userId"],
            content=item["content"],
            created_at=parse_timestamp(item["createdAt"]),
            user=CommentAuthor(
                id=item["userId"],
                name=item.get("userName") or None,
                email=item.get("userEmail") or None,
                profile_image_url=item.get("userProfileImage"),
            ),
        )


def parse_timestamp(value: str) -> datetime:
    """ISO 8601 timestamp, including the ``Z`` suffix written by JavaScript clients."""
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def dynamodb_client(settings: AWSSettings):
    return boto3.client(
        "dynamodb",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        endpoint_url=settings.aws_endpoint_url,
    )


def create_dynamodb_tables(settings: AWSSettings, client=None) -> List[str]:
    """Create the likes and comments tables if missing. Returns the created names."""
    client = client or dynamodb_client(settings)

    created = []
    for table_name in (settings.likes_table, settings.comments_table):
        try:
            client.describe_table(TableName=table_name)
            logger.info(f"Table {table_name} already exists")
            continue
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                raise

        client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        logger.info(f"Table {table_name} created successfully")
        created.append(table_name)

    return created
