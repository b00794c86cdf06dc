# shared_lib/schemas.py
"""
Validation schemas shared by the web server and the Python client.

Every upload limit and field constraint lives here once so the two sides
cannot drift apart.
"""
import enum
import re
from typing import Any, Dict, List, Optional

from pydantic import (
    AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationError, field_validator
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

MB = 1024 * 1024

MAX_VIDEO_SIZE = 100 * MB
MAX_THUMBNAIL_SIZE = 5 * MB
PRESIGNED_URL_EXPIRES_IN = 600  # seconds

ALLOWED_VIDEO_TYPES = (
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/avi",
    "video/mov",
    "video/quicktime",
)
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

FILE_NAME_MAX_LENGTH = 255
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 5000
COMMENT_MAX_LENGTH = 2000
REPLY_PREVIEW_COUNT = 3

DEFAULT_PAGE_LIMIT = 12
MAX_PAGE_LIMIT = 50

_INVALID_FILE_NAME = re.compile(r'[<>:"/\\|?*]')


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LikeType(str, enum.Enum):
    LIKE = "LIKE"
    DISLIKE = "DISLIKE"


class VideoSortOrder(str, enum.Enum):
    newest = "newest"
    oldest = "oldest"
    popular = "popular"
    views = "views"


def _check_file_name(value: str) -> str:
    if not value:
        raise PydanticCustomError("file_name", "File name is required")
    if len(value) > FILE_NAME_MAX_LENGTH:
        raise PydanticCustomError(
            "file_name", "File name must be less than 255 characters"
        )
    if _INVALID_FILE_NAME.search(value):
        raise PydanticCustomError("file_name", "File name contains invalid characters")
    return value


def _check_file_size(value: int, limit: int, message: str) -> int:
    if value < 1:
        raise PydanticCustomError("file_size", "File size is required")
    if value > limit:
        raise PydanticCustomError("file_size", message)
    return value


class VideoFileSchema(CamelModel):
    file_name: str
    file_type: str
    file_size: int

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, value: str) -> str:
        return _check_file_name(value)

    @field_validator("file_type")
    @classmethod
    def validate_file_type(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("file_type", "File type is required")
        if value not in ALLOWED_VIDEO_TYPES:
            raise PydanticCustomError("file_type", "Unsupported video format")
        return value

    @field_validator("file_size")
    @classmethod
    def validate_file_size(cls, value: int) -> int:
        return _check_file_size(value, MAX_VIDEO_SIZE, "File size must be less than 100MB")

    @property
    def extension(self) -> str:
        return file_extension(self.file_name)


class ThumbnailFileSchema(CamelModel):
    file_name: str
    file_type: str
    file_size: int

    @field_validator("file_name")
    @classmethod
    def validate_file_name(cls, value: str) -> str:
        return _check_file_name(value)

    @field_validator("file_type")
    @classmethod
    def validate_file_type(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("file_type", "File type is required")
        if value not in ALLOWED_IMAGE_TYPES:
            raise PydanticCustomError("file_type", "Unsupported image format")
        return value

    @field_validator("file_size")
    @classmethod
    def validate_file_size(cls, value: int) -> int:
        return _check_file_size(value, MAX_THUMBNAIL_SIZE, "Thumbnail must be less than 5MB")

    @property
    def extension(self) -> str:
        return file_extension(self.file_name)


class ThumbnailUploadRequest(ThumbnailFileSchema):
    video_id: str = Field(..., min_length=1)


class VideoDetailsSchema(CamelModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _check_description(value)


class CreateVideoRequest(VideoDetailsSchema):
    video_id: str = Field(..., min_length=1)
    video_url: AnyHttpUrl
    thumbnail_url: Optional[AnyHttpUrl] = None


class UpdateVideoRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _check_title(value)

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: Optional[str]) -> Optional[str]:
        return _check_description(value)


class VideoQuery(CamelModel):
    user_id: Optional[str] = None
    limit: int = Field(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT)
    offset: int = Field(0, ge=0)
    is_public: Optional[bool] = None
    search: Optional[str] = None
    sort_by: VideoSortOrder = VideoSortOrder.newest


class LikeRequest(CamelModel):
    type: LikeType


class CommentCreateRequest(CamelModel):
    content: str
    parent_id: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        return _check_comment(value)


class CommentUpdateRequest(CamelModel):
    content: str

    @field_validator("content")
    @classmethod
    def validate_content(cls, value: str) -> str:
        return _check_comment(value)


def _check_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("title", "Title is required")
    if len(value) > TITLE_MAX_LENGTH:
        raise PydanticCustomError("title", "Title must be less than 200 characters")
    return value


def _check_description(value: Optional[str]) -> Optional[str]:
    if value is not None and len(value) > DESCRIPTION_MAX_LENGTH:
        raise PydanticCustomError(
            "description", "Description must be less than 5000 characters"
        )
    return value


def _check_comment(value: str) -> str:
    value = value.strip()
    if not value:
        raise PydanticCustomError("content", "Comment cannot be empty")
    if len(value) > COMMENT_MAX_LENGTH:
        raise PydanticCustomError("content", "Comment cannot exceed 2000 characters")
    return value


def file_extension(file_name: str) -> str:
    """Return the text after the last dot, or the whole name when there is none."""
    return file_name.rsplit(".", 1)[-1]


def validation_details(exc: ValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic error into ``[{"field": ..., "message": ...}]``."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
