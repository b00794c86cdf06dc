"""
Client-side upload orchestration: validate, presign, PUT, save metadata.
"""
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import aiofiles
import httpx
from pydantic import ValidationError

from shared_lib.schemas import (
    CreateVideoRequest, ThumbnailFileSchema, ThumbnailUploadRequest, VideoDetailsSchema,
    VideoFileSchema, validation_details
)
from client.api_client import ApiError, VideoShareClient
from client.thumbnails import ThumbnailOption

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class UploadStep:
    VALIDATE = "validate"
    PRESIGN_VIDEO = "presign_video"
    UPLOAD_VIDEO = "upload_video"
    PRESIGN_THUMBNAIL = "presign_thumbnail"
    UPLOAD_THUMBNAIL = "upload_thumbnail"
    SAVE_METADATA = "save_metadata"


class UploadError(Exception):
    """An upload step failed; nothing after it was attempted."""

    def __init__(self, step: str, message: str, details: Optional[list] = None):
        self.step = step
        self.message = message
        self.details = details or []
        super().__init__(f"{step}: {message}")


def default_title(video_path: Union[str, Path]) -> str:
    """File name without its extension."""
    return Path(video_path).stem


def guess_content_type(path: Union[str, Path], default: str = "application/octet-stream") -> str:
    content_type, _ = mimetypes.guess_type(str(path))
    return content_type or default


class VideoUploader:
    """
    Runs the upload steps strictly in order with no retries.

    Progress is reported as 0 at the start, 90 once the video is in storage,
    95 after the (optional) thumbnail and 100 when the metadata is saved.
    """

    def __init__(self, client: VideoShareClient):
        self.client = client

    async def upload(
        self,
        video_path: Union[str, Path],
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail: Optional[ThumbnailOption] = None,
        content_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        """Upload a local video file and return the saved video."""
        video_path = Path(video_path)

        def report(percent: int) -> None:
            if on_progress is not None:
                on_progress(percent)

        file, details = self._validate(
            video_path, title, description, thumbnail, content_type
        )
        report(0)

        presigned = await self._step(UploadStep.PRESIGN_VIDEO, self.client.request_video_upload(file))
        video_id = presigned["videoId"]

        async with aiofiles.open(video_path, "rb") as f:
            video_bytes = await f.read()
        await self._step(
            UploadStep.UPLOAD_VIDEO,
            self.client.put_object(presigned["uploadUrl"], video_bytes, file.file_type),
        )
        report(90)

        thumbnail_url = None
        if thumbnail is not None:
            thumbnail_request = ThumbnailUploadRequest(
                video_id=video_id,
                file_name=thumbnail.file_name,
                file_type=thumbnail.content_type,
                file_size=thumbnail.size,
            )
            thumb = await self._step(
                UploadStep.PRESIGN_THUMBNAIL, self.client.request_thumbnail_upload(thumbnail_request)
            )
            await self._step(
                UploadStep.UPLOAD_THUMBNAIL,
                self.client.put_object(thumb["uploadUrl"], thumbnail.data, thumbnail.content_type),
            )
            thumbnail_url = thumb["thumbnailUrl"]
        report(95)

        request = CreateVideoRequest(
            video_id=video_id,
            title=details.title,
            description=details.description,
            video_url=presigned["videoUrl"],
            thumbnail_url=thumbnail_url,
        )
        video = await self._step(UploadStep.SAVE_METADATA, self.client.create_video(request))
        report(100)

        logger.info("Uploaded %s as video %s", video_path.name, video_id)
        return video

    def _validate(self, video_path: Path, title: Optional[str], description: Optional[str],
                  thumbnail: Optional[ThumbnailOption], content_type: Optional[str]):
        try:
            size = os.path.getsize(video_path)
        except OSError as e:
            raise UploadError(UploadStep.VALIDATE, f"Cannot read {video_path}: {e}") from e

        try:
            file = VideoFileSchema(
                file_name=video_path.name,
                file_type=content_type or guess_content_type(video_path),
                file_size=size,
            )
            details = VideoDetailsSchema(
                title=title if title and title.strip() else default_title(video_path),
                description=description.strip() if description else None,
            )
            if thumbnail is not None:
                ThumbnailFileSchema(
                    file_name=thumbnail.file_name,
                    file_type=thumbnail.content_type,
                    file_size=thumbnail.size,
                )
        except ValidationError as e:
            errors = validation_details(e)
            raise UploadError(UploadStep.VALIDATE, errors[0]["message"], errors) from e
        return file, details

    async def _step(self, step: str, awaitable):
        try:
            return await awaitable
        except ApiError as e:
            raise UploadError(step, e.message, e.details) from e
        except httpx.HTTPError as e:
            raise UploadError(step, str(e) or e.__class__.__name__) from e
