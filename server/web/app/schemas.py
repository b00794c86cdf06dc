"""
Response models for the VidShare API.

Request bodies and shared limits live in ``shared_lib.schemas``.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import ConfigDict

from shared_lib.schemas import CamelModel, LikeType


class ApiModel(CamelModel):
    model_config = ConfigDict(from_attributes=True)


class UserSummary(ApiModel):
    id: str
    username: str
    display_name: Optional[str] = None
    avatar: Optional[str] = None
    channel_name: Optional[str] = None


class VideoOut(ApiModel):
    id: str
    title: str
    description: Optional[str] = None
    video_url: str
    thumbnail_url: Optional[str] = None
    views: int
    duration: Optional[int] = None
    is_public: bool
    user_id: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    like_count: int = 0
    dislike_count: int = 0
    comment_count: int = 0


class CommentOut(ApiModel):
    id: str
    content: str
    user_id: str
    video_id: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    replies: List["CommentOut"] = []
    reply_count: int = 0


class Pagination(ApiModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class VideoListResponse(ApiModel):
    videos: List[VideoOut]
    pagination: Pagination


class VideoDetailResponse(ApiModel):
    video: VideoOut
    comments: List[CommentOut]


class VideoResponse(ApiModel):
    success: bool = True
    video: VideoOut


class PresignedUrlResponse(ApiModel):
    upload_url: str
    video_url: str
    video_id: str
    s3_key: str
    expires_in: int


class ThumbnailUrlResponse(ApiModel):
    upload_url: str
    thumbnail_url: str
    s3_key: str
    expires_in: int


class LikeResponse(ApiModel):
    action: str
    type: LikeType
    message: str
    like_count: int
    dislike_count: int
    user_status: Optional[LikeType] = None


class LikeStatusResponse(ApiModel):
    is_liked: bool
    is_disliked: bool


class CommentListResponse(ApiModel):
    comments: List[CommentOut]


class CommentResponse(ApiModel):
    success: bool = True
    comment: CommentOut


class SuccessResponse(ApiModel):
    success: bool = True
    message: Optional[str] = None


CommentOut.model_rebuild()
