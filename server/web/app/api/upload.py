"""
Presigned upload API endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import ThumbnailUploadRequest, VideoFileSchema
from ..db import get_db
from ..dependencies import get_current_user_id, get_storage
from ..schemas import PresignedUrlResponse, ThumbnailUrlResponse
from ..services.upload_service import UploadService
from ..services.video_s3_service import VideoS3Service

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(
    file: VideoFileSchema,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: VideoS3Service = Depends(get_storage),
):
    """Presign a direct PUT of a video file to storage."""
    service = UploadService(db, storage)
    return await service.issue_video_upload(user_id, file)


@router.post("/thumbnail", response_model=ThumbnailUrlResponse)
async def create_thumbnail_url(
    request: ThumbnailUploadRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: VideoS3Service = Depends(get_storage),
):
    """Presign a direct PUT of a thumbnail for one of the caller's uploads."""
    service = UploadService(db, storage)
    return await service.issue_thumbnail_upload(user_id, request)
