"""
Video likes/dislikes service.
"""
from typing import Any, Dict, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared_lib.schemas import LikeType
from server.web.app.errors import NotFoundError
from server.web.app.models import Like, User, Video
from server.web.app.services.base_service import BaseService

_MESSAGES = {
    ("created", LikeType.LIKE): "Video liked",
    ("created", LikeType.DISLIKE): "Video disliked",
    ("updated", LikeType.LIKE): "Changed to like",
    ("updated", LikeType.DISLIKE): "Changed to dislike",
    ("removed", LikeType.LIKE): "Like removed",
    ("removed", LikeType.DISLIKE): "Dislike removed",
}


class VideoLikesService(BaseService):
    """Service for managing video likes and dislikes."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    async def toggle(self, video_id: str, user_id: str, like_type: LikeType) -> Dict[str, Any]:
        """
        Apply a like or dislike as a toggle.

        No previous reaction creates one, the same reaction again removes it,
        and the opposite reaction switches the existing row in place.
        """
        await self._get_visible_video(video_id, user_id)
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")
        existing = await self._get_reaction(video_id, user_id)

        if existing is None:
            self.db.add(Like(video_id=video_id, user_id=user_id, type=like_type))
            action = "created"
            user_status: Optional[LikeType] = like_type
        elif existing.type == like_type:
            await self.db.delete(existing)
            action = "removed"
            user_status = None
        else:
            existing.type = like_type
            action = "updated"
            user_status = like_type

        await self.db.commit()

        counts = await self._get_like_counts(video_id)
        return {
            "action": action,
            "type": like_type,
            "message": _MESSAGES[(action, like_type)],
            "like_count": counts["like_count"],
            "dislike_count": counts["dislike_count"],
            "user_status": user_status,
        }

    async def get_status(self, video_id: str, user_id: Optional[str]) -> Dict[str, bool]:
        """The caller's reaction to a video; anonymous callers have none."""
        await self._get_visible_video(video_id, user_id)
        if user_id is None:
            return {"is_liked": False, "is_disliked": False}

        existing = await self._get_reaction(video_id, user_id)
        like_type = existing.type if existing else None
        return {
            "is_liked": like_type == LikeType.LIKE,
            "is_disliked": like_type == LikeType.DISLIKE,
        }

    async def _get_visible_video(self, video_id: str, viewer_id: Optional[str]) -> None:
        """Private videos exist only for their owner."""
        video = await self.db.get(Video, video_id)
        if video is None or (not video.is_public and video.user_id != viewer_id):
            raise NotFoundError("Video not found")

    async def _get_reaction(self, video_id: str, user_id: str) -> Optional[Like]:
        result = await self.db.execute(
            select(Like).where(and_(Like.video_id == video_id, Like.user_id == user_id))
        )
        return result.scalar_one_or_none()

    async def _get_like_counts(self, video_id: str) -> Dict[str, int]:
        result = await self.db.execute(
            select(Like.type, func.count(Like.id))
            .where(Like.video_id == video_id)
            .group_by(Like.type)
        )
        counts = dict(result.all())
        return {
            "like_count": counts.get(LikeType.LIKE, 0),
            "dislike_count": counts.get(LikeType.DISLIKE, 0),
        }
