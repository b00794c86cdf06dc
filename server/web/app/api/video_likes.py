"""
Video likes/dislikes API endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import LikeRequest
from ..db import get_db
from ..dependencies import get_current_user_id, get_optional_user_id
from ..schemas import LikeResponse, LikeStatusResponse
from ..services.video_likes_service import VideoLikesService

router = APIRouter(prefix="/videos", tags=["video_likes"])


@router.post("/{video_id}/like", response_model=LikeResponse)
async def toggle_like(
    video_id: str,
    request: LikeRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Like or dislike a video; repeating the same reaction removes it."""
    service = VideoLikesService(db)
    return await service.toggle(video_id, user_id, request.type)


@router.get("/{video_id}/like", response_model=LikeStatusResponse)
async def get_like_status(
    video_id: str,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get current user's like/dislike status for a video."""
    service = VideoLikesService(db)
    return await service.get_status(video_id, user_id)
