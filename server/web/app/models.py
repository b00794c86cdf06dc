"""
SQLAlchemy 2.0 database models.
"""
import uuid
import enum

from sqlalchemy import (
    Column, String, DateTime, Enum as SAEnum, ForeignKey, Text, Boolean, Integer
)
import sqlalchemy as sa
from sqlalchemy.orm import relationship, declarative_base

from shared_lib.schemas import LikeType
from shared_lib.utils import utc_now

Base = declarative_base()


def _uuid_str() -> str:
    return str(uuid.uuid4())


class PendingUploadStatus(str, enum.Enum):
    pending = "pending"
    committed = "committed"


class User(Base):
    __tablename__ = "users"

    # Subject id issued by the external auth provider
    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, default="", index=True)
    username = Column(String(100), nullable=False, index=True)
    display_name = Column(String(100), nullable=True)
    avatar = Column(Text, nullable=True)
    channel_name = Column(String(100), nullable=True)
    subscribers_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    videos = relationship("Video", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class Video(Base):
    __tablename__ = "videos"

    # Minted by the presigned-URL issuer, echoed back by the client on create
    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # Storage
    video_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    video_s3_key = Column(String(500), nullable=True)
    thumbnail_s3_key = Column(String(500), nullable=True)

    views = Column(Integer, default=0, nullable=False)
    duration = Column(Integer, nullable=True)  # seconds
    is_public = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    user = relationship("User", back_populates="videos")
    likes = relationship("Like", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)


class Like(Base):
    __tablename__ = "likes"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(64), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(SAEnum(LikeType, name="liketype"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    # Relationships
    user = relationship("User", back_populates="likes")
    video = relationship("Video", back_populates="likes")

    # One like/dislike per user per video
    __table_args__ = (
        sa.UniqueConstraint("user_id", "video_id", name="uq_like_user_video"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    video_id = Column(String(64), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)

    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    video = relationship("Video", back_populates="comments")
    user = relationship("User", back_populates="comments")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent", cascade="all, delete-orphan", passive_deletes=True)


class PendingUpload(Base):
    """Upload that was presigned but whose metadata has not been saved yet."""
    __tablename__ = "pending_uploads"

    video_id = Column(String(64), primary_key=True)
    # No foreign key: the presigning user may not have been synced locally yet
    user_id = Column(String(64), nullable=False, index=True)
    video_s3_key = Column(String(500), nullable=False)
    thumbnail_s3_key = Column(String(500), nullable=True)

    status = Column(SAEnum(PendingUploadStatus, name="pendinguploadstatus"),
                    default=PendingUploadStatus.pending, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    committed_at = Column(DateTime(timezone=True), nullable=True)
