"""
Upload Service

Issues presigned PUT URLs for videos and thumbnails and tracks each issued
upload as a pending record until its metadata is saved. Pending records that
are never committed are reaped together with their storage objects.
"""
from datetime import timedelta
from typing import Any, Dict, List

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import PRESIGNED_URL_EXPIRES_IN, ThumbnailUploadRequest, VideoFileSchema
from shared_lib.utils import generate_id, utc_now
from server.web.app.errors import NotFoundError, StorageError
from server.web.app.models import PendingUpload, PendingUploadStatus
from server.web.app.services.base_service import BaseService
from server.web.app.services.video_s3_service import VideoS3Service, thumbnail_key, video_key


class UploadService(BaseService):
    """Service for presigned direct-to-storage uploads"""

    def __init__(self, db: AsyncSession, storage: VideoS3Service):
        super().__init__(db)
        self.storage = storage

    async def issue_video_upload(self, user_id: str, file: VideoFileSchema) -> Dict[str, Any]:
        """
        Mint a video id and presign the PUT of its raw file.

        The returned URL only accepts the declared content type and expires
        after ``PRESIGNED_URL_EXPIRES_IN`` seconds.
        """
        video_id = generate_id()
        s3_key = video_key(video_id, file.extension)

        upload_url = self.storage.presign_put(
            s3_key,
            content_type=file.file_type,
            expires_in=PRESIGNED_URL_EXPIRES_IN,
        )

        self.db.add(PendingUpload(
            video_id=video_id,
            user_id=user_id,
            video_s3_key=s3_key,
        ))
        await self.db.commit()

        self.logger.info(
            "Issued video upload %s for user %s", video_id, user_id,
            extra={'video_id': video_id, 'file_size': file.file_size},
        )
        return {
            "upload_url": upload_url,
            "video_url": self.storage.public_url(s3_key),
            "video_id": video_id,
            "s3_key": s3_key,
            "expires_in": PRESIGNED_URL_EXPIRES_IN,
        }

    async def issue_thumbnail_upload(self, user_id: str, request: ThumbnailUploadRequest) -> Dict[str, Any]:
        """
        Presign the PUT of a thumbnail for one of the caller's pending uploads.

        Committed videos get 404, so a saved video keeps the thumbnail key and
        URL it was created with.
        """
        pending = await self.db.get(PendingUpload, request.video_id)
        if (pending is None or pending.user_id != user_id
                or pending.status != PendingUploadStatus.pending):
            raise NotFoundError("Upload not found")

        s3_key = thumbnail_key(request.video_id, request.extension)
        try:
            upload_url = self.storage.presign_put(
                s3_key,
                content_type=request.file_type,
                expires_in=PRESIGNED_URL_EXPIRES_IN,
            )
        except StorageError as e:
            raise StorageError("Failed to generate thumbnail upload URL") from e

        pending.thumbnail_s3_key = s3_key
        await self.db.commit()

        return {
            "upload_url": upload_url,
            "thumbnail_url": self.storage.public_url(s3_key),
            "s3_key": s3_key,
            "expires_in": PRESIGNED_URL_EXPIRES_IN,
        }

    async def reap_abandoned_uploads(self, older_than: timedelta) -> int:
        """
        Delete pending uploads issued more than ``older_than`` ago that were
        never committed, along with any objects they left in storage.

        Returns the number of reaped uploads. A record whose objects could not
        be deleted is kept so the next run retries it.
        """
        cutoff = utc_now() - older_than
        result = await self.db.execute(
            select(PendingUpload).where(
                and_(
                    PendingUpload.status == PendingUploadStatus.pending,
                    PendingUpload.created_at < cutoff,
                )
            )
        )
        stale: List[PendingUpload] = list(result.scalars().all())

        reaped = 0
        for pending in stale:
            keys = [key for key in (pending.video_s3_key, pending.thumbnail_s3_key) if key]
            try:
                for key in keys:
                    await self.storage.delete_object(key)
            except StorageError:
                self.logger.warning("Keeping pending upload %s, storage cleanup failed", pending.video_id)
                continue
            await self.db.delete(pending)
            reaped += 1

        await self.db.commit()
        if reaped:
            self.logger.info("Reaped %d abandoned uploads", reaped)
        return reaped
