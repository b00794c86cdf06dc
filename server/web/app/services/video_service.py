"""
Video metadata service: create, feed listing, watch reads, edits and deletes.
"""
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shared_lib.schemas import (
    CreateVideoRequest, LikeType, UpdateVideoRequest, VideoQuery, VideoSortOrder
)
from shared_lib.utils import utc_now
from server.web.app.errors import ConflictError, ForbiddenError, NotFoundError, StorageError
from server.web.app.models import Comment, Like, PendingUpload, PendingUploadStatus, User, Video
from server.web.app.services.base_service import BaseService
from server.web.app.services.video_s3_service import VideoS3Service


def serialize_user(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": user.id,
        "username": user.username,
        "display_name": user.display_name,
        "avatar": user.avatar,
        "channel_name": user.channel_name,
    }


def serialize_video(video: Video, like_count: int = 0, dislike_count: int = 0,
                    comment_count: int = 0) -> Dict[str, Any]:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "video_url": video.video_url,
        "thumbnail_url": video.thumbnail_url,
        "views": video.views,
        "duration": video.duration,
        "is_public": video.is_public,
        "user_id": video.user_id,
        "created_at": video.created_at,
        "updated_at": video.updated_at,
        "user": serialize_user(video.user),
        "like_count": like_count,
        "dislike_count": dislike_count,
        "comment_count": comment_count,
    }


class VideoService(BaseService):
    """Service for video records."""

    def __init__(self, db: AsyncSession, storage: Optional[VideoS3Service] = None):
        super().__init__(db)
        self.storage = storage

    async def create_video(self, user_id: str, request: CreateVideoRequest) -> Dict[str, Any]:
        """
        Persist metadata for an uploaded video.

        The id comes from the presigned-URL step. An existing video is never
        overwritten; a matching pending upload is promoted to committed.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        if await self.db.get(Video, request.video_id) is not None:
            raise ConflictError("Video already exists")

        pending = await self.db.get(PendingUpload, request.video_id)
        if pending is not None and pending.user_id != user_id:
            raise NotFoundError("Upload not found")

        video = Video(
            id=request.video_id,
            user_id=user_id,
            title=request.title,
            description=request.description,
            video_url=str(request.video_url),
            thumbnail_url=str(request.thumbnail_url) if request.thumbnail_url else None,
        )
        if pending is not None:
            video.video_s3_key = pending.video_s3_key
            video.thumbnail_s3_key = pending.thumbnail_s3_key
            pending.status = PendingUploadStatus.committed
            pending.committed_at = utc_now()

        self.db.add(video)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same id
            await self.db.rollback()
            raise ConflictError("Video already exists") from e

        self.logger.info("Created video %s", video.id, extra={'video_id': video.id, 'user_id': user_id})
        video = await self._load_video(video.id)
        return serialize_video(video)

    async def list_videos(self, query: VideoQuery, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """Paginated feed with owner summary and like/comment counts."""
        conditions = []
        if query.is_public is False:
            # Private listings only ever show the caller's own videos
            conditions.append(Video.is_public.is_(False))
            conditions.append(Video.user_id == viewer_id)
        else:
            conditions.append(Video.is_public.is_(True))
        if query.user_id:
            conditions.append(Video.user_id == query.user_id)
        if query.search:
            pattern = f"%{query.search.strip()}%"
            conditions.append(or_(Video.title.ilike(pattern), Video.description.ilike(pattern)))

        total = await self.db.scalar(
            select(func.count()).select_from(Video).where(and_(*conditions))
        )

        stmt = select(Video).options(selectinload(Video.user)).where(and_(*conditions))
        if query.sort_by == VideoSortOrder.oldest:
            stmt = stmt.order_by(Video.created_at.asc())
        elif query.sort_by == VideoSortOrder.views:
            stmt = stmt.order_by(Video.views.desc(), Video.created_at.desc())
        elif query.sort_by == VideoSortOrder.popular:
            like_counts = (
                select(Like.video_id, func.count(Like.id).label("like_count"))
                .where(Like.type == LikeType.LIKE)
                .group_by(Like.video_id)
                .subquery()
            )
            stmt = stmt.outerjoin(like_counts, like_counts.c.video_id == Video.id).order_by(
                func.coalesce(like_counts.c.like_count, 0).desc(), Video.created_at.desc()
            )
        else:
            stmt = stmt.order_by(Video.created_at.desc())

        result = await self.db.execute(stmt.offset(query.offset).limit(query.limit))
        videos = list(result.scalars().all())

        counts = await self._counts([video.id for video in videos])
        return {
            "videos": [serialize_video(video, **counts[video.id]) for video in videos],
            "pagination": {
                "total": total,
                "limit": query.limit,
                "offset": query.offset,
                "has_more": query.offset + len(videos) < total,
            },
        }

    async def get_video_and_record_view(self, video_id: str, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Return a video and count one view of it.

        The increment is a single UPDATE so concurrent viewers never lose
        counts, and the returned ``views`` already includes this read.
        """
        video = await self._get_visible(video_id, viewer_id)

        await self.db.execute(
            update(Video)
            .where(Video.id == video.id)
            .values(views=Video.views + 1, updated_at=Video.updated_at)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        video = await self._load_video(video_id)
        counts = await self._counts([video_id])
        return serialize_video(video, **counts[video_id])

    async def update_video(self, video_id: str, user_id: str, request: UpdateVideoRequest) -> Dict[str, Any]:
        video = await self._get_owned(video_id, user_id)

        changes = request.model_dump(exclude_unset=True)
        if changes.get("title") is not None:
            video.title = changes["title"]
        if "description" in changes:
            video.description = changes["description"]
        if changes.get("is_public") is not None:
            video.is_public = changes["is_public"]
        await self.db.commit()

        video = await self._load_video(video_id)
        counts = await self._counts([video_id])
        return serialize_video(video, **counts[video_id])

    async def delete_video(self, video_id: str, user_id: str) -> None:
        """Delete a video with its likes, comments and storage objects."""
        video = await self._get_owned(video_id, user_id)
        keys = [key for key in (video.video_s3_key, video.thumbnail_s3_key) if key]

        pending = await self.db.get(PendingUpload, video_id)
        if pending is not None:
            await self.db.delete(pending)
        await self.db.delete(video)
        await self.db.commit()
        self.logger.info("Deleted video %s", video_id, extra={'video_id': video_id})

        if self.storage is None:
            return
        for key in keys:
            try:
                await self.storage.delete_object(key)
            except StorageError:
                self.logger.error("Orphaned storage object %s after deleting video %s", key, video_id)

    async def _load_video(self, video_id: str) -> Video:
        result = await self.db.execute(
            select(Video)
            .options(selectinload(Video.user))
            .where(Video.id == video_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _get_visible(self, video_id: str, viewer_id: Optional[str]) -> Video:
        video = await self.db.get(Video, video_id)
        if video is None or (not video.is_public and video.user_id != viewer_id):
            raise NotFoundError("Video not found")
        return video

    async def _get_owned(self, video_id: str, user_id: str) -> Video:
        video = await self.db.get(Video, video_id)
        if video is None:
            raise NotFoundError("Video not found")
        if video.user_id != user_id:
            raise ForbiddenError("You can only modify your own videos")
        return video

    async def _counts(self, video_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        """Like, dislike and comment counts keyed by video id."""
        video_ids = list(video_ids)
        counts = {
            video_id: {"like_count": 0, "dislike_count": 0, "comment_count": 0}
            for video_id in video_ids
        }
        if not video_ids:
            return counts

        like_rows = await self.db.execute(
            select(Like.video_id, Like.type, func.count(Like.id))
            .where(Like.video_id.in_(video_ids))
            .group_by(Like.video_id, Like.type)
        )
        for video_id, like_type, count in like_rows.all():
            key = "like_count" if like_type == LikeType.LIKE else "dislike_count"
            counts[video_id][key] = count

        comment_rows = await self.db.execute(
            select(Comment.video_id, func.count(Comment.id))
            .where(Comment.video_id.in_(video_ids))
            .group_by(Comment.video_id)
        )
        for video_id, count in comment_rows.all():
            counts[video_id]["comment_count"] = count

        return counts

