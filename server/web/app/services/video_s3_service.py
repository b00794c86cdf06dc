"""
Video S3 Storage Service

Object storage for raw videos and thumbnails:
- Presigned PUT URLs so browsers and clients upload straight to the bucket
- Organized key layout under ``videos/``
- Public URL construction for stored objects
- Deletion of objects belonging to removed or abandoned uploads
"""
import asyncio
import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from shared_lib.schemas import PRESIGNED_URL_EXPIRES_IN
from server.web.app.config import Settings
from server.web.app.errors import StorageError

logger = logging.getLogger(__name__)

RAW_VIDEO_PREFIX = "videos/raw"
THUMBNAIL_PREFIX = "videos/thumbnails"


def video_key(video_id: str, extension: str) -> str:
    """Key for an uploaded video: ``videos/raw/{video_id}.{ext}``"""
    return f"{RAW_VIDEO_PREFIX}/{video_id}.{extension}"


def thumbnail_key(video_id: str, extension: str) -> str:
    """Key for a video's thumbnail: ``videos/thumbnails/{video_id}.{ext}``"""
    return f"{THUMBNAIL_PREFIX}/{video_id}.{extension}"


class VideoS3Service:
    """Service for S3 video storage operations"""

    def __init__(self, bucket_name: str, region: str, client=None, public_base_url: str = ""):
        self.bucket_name = bucket_name
        self.region = region
        self.public_base_url = public_base_url.rstrip("/")
        self.s3_client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "VideoS3Service":
        """Build the boto3 client from application settings."""
        config = Config(
            region_name=settings.S3_REGION,
            signature_version="s3v4",
            retries={
                'max_attempts': 3,
                'mode': 'adaptive'
            },
        )
        client_kwargs = {"config": config}
        if settings.S3_ENDPOINT_URL:
            client_kwargs["endpoint_url"] = settings.S3_ENDPOINT_URL

        # Use credentials from settings if provided, else the default chain
        if settings.S3_ACCESS_KEY_ID and settings.S3_SECRET_ACCESS_KEY:
            client_kwargs["aws_access_key_id"] = settings.S3_ACCESS_KEY_ID
            client_kwargs["aws_secret_access_key"] = settings.S3_SECRET_ACCESS_KEY

        return cls(
            bucket_name=settings.S3_BUCKET_NAME,
            region=settings.S3_REGION,
            client=boto3.client("s3", **client_kwargs),
            public_base_url=settings.S3_PUBLIC_BASE_URL,
        )

    def public_url(self, s3_key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{s3_key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{s3_key}"

    def presign_put(
        self,
        s3_key: str,
        content_type: str,
        expires_in: int = PRESIGNED_URL_EXPIRES_IN,
    ) -> str:
        """
        Generate a presigned PUT URL for ``s3_key``.

        The uploader must send the same Content-Type header
        or the signature will not match. Signing is local, so this does not
        touch the network.
        """
        params = {
            'Bucket': self.bucket_name,
            'Key': s3_key,
            'ContentType': content_type,
        }

        try:
            return self.s3_client.generate_presigned_url(
                'put_object',
                Params=params,
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to presign %s: %s", s3_key, e)
            raise StorageError("Failed to generate upload URL") from e

    async def delete_object(self, s3_key: str) -> None:
        try:
            await asyncio.to_thread(
                self.s3_client.delete_object, Bucket=self.bucket_name, Key=s3_key
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to delete S3 object %s: %s", s3_key, e)
            raise StorageError(f"Failed to delete {s3_key}") from e
