"""
Video comments service.

Comments nest one level deep: a reply's parent is always a top-level comment
on the same video.
"""
from collections import defaultdict
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from shared_lib.schemas import REPLY_PREVIEW_COUNT, CommentCreateRequest, CommentUpdateRequest
from server.web.app.errors import ForbiddenError, NotFoundError, RequestValidationFailed
from server.web.app.models import Comment, User, Video
from server.web.app.services.base_service import BaseService
from server.web.app.services.video_service import serialize_user


def serialize_comment(comment: Comment, replies: Optional[List[Dict[str, Any]]] = None,
                      reply_count: int = 0) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "content": comment.content,
        "user_id": comment.user_id,
        "video_id": comment.video_id,
        "parent_id": comment.parent_id,
        "created_at": comment.created_at,
        "updated_at": comment.updated_at,
        "user": serialize_user(comment.user),
        "replies": replies or [],
        "reply_count": reply_count,
    }


class VideoCommentsService(BaseService):
    """Service for managing video comments."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    async def list_comments(self, video_id: str, viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Top-level comments newest first, each with its first
        ``REPLY_PREVIEW_COUNT`` replies (oldest first) and total reply count.
        """
        await self._get_visible_video(video_id, viewer_id)

        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(and_(Comment.video_id == video_id, Comment.parent_id.is_(None)))
            .order_by(Comment.created_at.desc())
        )
        top_level = list(result.scalars().all())
        if not top_level:
            return []

        replies_result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.parent_id.in_([comment.id for comment in top_level]))
            .order_by(Comment.created_at.asc())
        )
        replies_by_parent: Dict[str, List[Comment]] = defaultdict(list)
        for reply in replies_result.scalars().all():
            replies_by_parent[reply.parent_id].append(reply)

        comments = []
        for comment in top_level:
            replies = replies_by_parent.get(comment.id, [])
            comments.append(serialize_comment(
                comment,
                replies=[serialize_comment(reply) for reply in replies[:REPLY_PREVIEW_COUNT]],
                reply_count=len(replies),
            ))
        return comments

    async def create_comment(self, video_id: str, user_id: str,
                             request: CommentCreateRequest) -> Dict[str, Any]:
        await self._get_visible_video(video_id, user_id)

        if await self.db.get(User, user_id) is None:
            raise NotFoundError("User not found")

        if request.parent_id:
            parent = await self.db.get(Comment, request.parent_id)
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.video_id != video_id:
                raise RequestValidationFailed("Parent comment belongs to a different video")
            if parent.parent_id is not None:
                raise RequestValidationFailed("Replies cannot be nested more than one level")

        comment = Comment(
            video_id=video_id,
            user_id=user_id,
            parent_id=request.parent_id or None,
            content=request.content,
        )
        self.db.add(comment)
        await self.db.commit()

        self.logger.info("Comment %s added to video %s", comment.id, video_id)
        comment = await self._load_comment(comment.id)
        return serialize_comment(comment)

    async def list_replies(self, video_id: str, comment_id: str,
                           viewer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """All replies to a top-level comment, oldest first."""
        await self._get_visible_video(video_id, viewer_id)
        await self._get_comment(video_id, comment_id)

        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.parent_id == comment_id)
            .order_by(Comment.created_at.asc())
        )
        return [serialize_comment(reply) for reply in result.scalars().all()]

    async def update_comment(self, video_id: str, comment_id: str, user_id: str,
                             request: CommentUpdateRequest) -> Dict[str, Any]:
        comment = await self._get_comment(video_id, comment_id)
        if comment.user_id != user_id:
            raise ForbiddenError("You can only edit your own comments")

        comment.content = request.content
        await self.db.commit()

        comment = await self._load_comment(comment_id)
        reply_count = 0
        if comment.parent_id is None:
            replies = await self.db.execute(select(Comment.id).where(Comment.parent_id == comment_id))
            reply_count = len(replies.all())
        return serialize_comment(comment, reply_count=reply_count)

    async def delete_comment(self, video_id: str, comment_id: str, user_id: str) -> None:
        """Delete a comment and, for a top-level comment, all of its replies."""
        comment = await self._get_comment(video_id, comment_id)
        if comment.user_id != user_id:
            raise ForbiddenError("You can only delete your own comments")

        await self.db.delete(comment)
        await self.db.commit()

    async def _get_visible_video(self, video_id: str, viewer_id: Optional[str]) -> Video:
        video = await self.db.get(Video, video_id)
        if video is None or (not video.is_public and video.user_id != viewer_id):
            raise NotFoundError("Video not found")
        return video

    async def _get_comment(self, video_id: str, comment_id: str) -> Comment:
        comment = await self.db.get(Comment, comment_id)
        if comment is None or comment.video_id != video_id:
            raise NotFoundError("Comment not found")
        return comment

    async def _load_comment(self, comment_id: str) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.id == comment_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
