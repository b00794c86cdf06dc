"""
Video metadata, feed and watch API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import (
    DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, CreateVideoRequest, UpdateVideoRequest,
    VideoQuery, VideoSortOrder
)
from ..db import get_db
from ..dependencies import get_current_user_id, get_optional_user_id, get_storage
from ..schemas import SuccessResponse, VideoDetailResponse, VideoListResponse, VideoResponse
from ..services.video_comments_service import VideoCommentsService
from ..services.video_s3_service import VideoS3Service
from ..services.video_service import VideoService

router = APIRouter(prefix="/videos", tags=["videos"])


def get_video_query(
    user_id: Optional[str] = Query(None, alias="userId"),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    is_public: Optional[bool] = Query(None, alias="isPublic"),
    search: Optional[str] = Query(None),
    sort_by: VideoSortOrder = Query(VideoSortOrder.newest, alias="sortBy"),
) -> VideoQuery:
    return VideoQuery(
        user_id=user_id,
        limit=limit,
        offset=offset,
        is_public=is_public,
        search=search or None,
        sort_by=sort_by,
    )


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
async def create_video(
    request: CreateVideoRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Save metadata for a video uploaded through a presigned URL."""
    service = VideoService(db)
    video = await service.create_video(user_id, request)
    return {"success": True, "video": video}


@router.get("", response_model=VideoListResponse)
async def list_videos(
    query: VideoQuery = Depends(get_video_query),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoService(db)
    return await service.list_videos(query, viewer_id)


@router.get("/{video_id}", response_model=VideoDetailResponse)
async def get_video(
    video_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Watch a video: returns it with its comments and counts one view."""
    video = await VideoService(db).get_video_and_record_view(video_id, viewer_id)
    comments = await VideoCommentsService(db).list_comments(video_id, viewer_id)
    return {"video": video, "comments": comments}


@router.patch("/{video_id}", response_model=VideoResponse)
async def update_video(
    video_id: str,
    request: UpdateVideoRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoService(db)
    video = await service.update_video(video_id, user_id, request)
    return {"success": True, "video": video}


@router.delete("/{video_id}", response_model=SuccessResponse)
async def delete_video(
    video_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    storage: VideoS3Service = Depends(get_storage),
):
    service = VideoService(db, storage)
    await service.delete_video(video_id, user_id)
    return {"success": True, "message": "Video deleted"}
