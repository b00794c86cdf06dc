"""
Video comments API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import CommentCreateRequest, CommentUpdateRequest
from ..db import get_db
from ..dependencies import get_current_user_id, get_optional_user_id
from ..schemas import CommentListResponse, CommentResponse, SuccessResponse
from ..services.video_comments_service import VideoCommentsService

router = APIRouter(prefix="/videos", tags=["video_comments"])


@router.get("/{video_id}/comments", response_model=CommentListResponse)
async def list_comments(
    video_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoCommentsService(db)
    return {"comments": await service.list_comments(video_id, viewer_id)}


@router.post("/{video_id}/comments", response_model=CommentResponse,
             status_code=status.HTTP_201_CREATED)
async def create_comment(
    video_id: str,
    request: CommentCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Comment on a video, or reply to a top-level comment with ``parentId``."""
    service = VideoCommentsService(db)
    comment = await service.create_comment(video_id, user_id, request)
    return {"success": True, "comment": comment}


@router.get("/{video_id}/comments/{comment_id}/replies", response_model=CommentListResponse)
async def list_replies(
    video_id: str,
    comment_id: str,
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoCommentsService(db)
    return {"comments": await service.list_replies(video_id, comment_id, viewer_id)}


@router.patch("/{video_id}/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    video_id: str,
    comment_id: str,
    request: CommentUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoCommentsService(db)
    comment = await service.update_comment(video_id, comment_id, user_id, request)
    return {"success": True, "comment": comment}


@router.delete("/{video_id}/comments/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    video_id: str,
    comment_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    service = VideoCommentsService(db)
    await service.delete_comment(video_id, comment_id, user_id)
    return {"success": True, "message": "Comment deleted"}
