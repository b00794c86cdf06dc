"""
State behind a watch page: the video, the viewer's reaction and comments.

Reactions are applied optimistically. Each change is a command that is
applied locally first, then committed to the server, and compensated if the
commit fails.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from shared_lib.schemas import REPLY_PREVIEW_COUNT, LikeType
from client.api_client import ApiError, VideoShareClient

logger = logging.getLogger(__name__)


class OptimisticCommand:
    """A local change with a server commit and a way to undo it."""

    def apply(self) -> None:
        raise NotImplementedError

    async def commit(self) -> Any:
        raise NotImplementedError

    def compensate(self) -> None:
        raise NotImplementedError


async def run_optimistic(command: OptimisticCommand) -> Any:
    """Apply, then commit; on an API or network failure, compensate and re-raise."""
    command.apply()
    try:
        return await command.commit()
    except (ApiError, httpx.HTTPError):
        command.compensate()
        raise


class ReactionState:
    """The viewer's reaction and the visible counters."""

    def __init__(self, status: Optional[LikeType] = None, like_count: int = 0, dislike_count: int = 0):
        self.status = status
        self.like_count = like_count
        self.dislike_count = dislike_count

    @property
    def is_liked(self) -> bool:
        return self.status == LikeType.LIKE

    @property
    def is_disliked(self) -> bool:
        return self.status == LikeType.DISLIKE

    def snapshot(self):
        return self.status, self.like_count, self.dislike_count

    def restore(self, snapshot) -> None:
        self.status, self.like_count, self.dislike_count = snapshot

    def _adjust(self, like_type: LikeType, delta: int) -> None:
        if like_type == LikeType.LIKE:
            self.like_count = max(0, self.like_count + delta)
        else:
            self.dislike_count = max(0, self.dislike_count + delta)

    def toggle(self, like_type: LikeType) -> None:
        """Same reaction clears it, anything else switches to ``like_type``."""
        if self.status == like_type:
            self._adjust(like_type, -1)
            self.status = None
            return
        if self.status is not None:
            self._adjust(self.status, -1)
        self._adjust(like_type, +1)
        self.status = like_type


class LikeToggle(OptimisticCommand):
    def __init__(self, client: VideoShareClient, video_id: str, state: ReactionState, like_type: LikeType):
        self.client = client
        self.video_id = video_id
        self.state = state
        self.like_type = LikeType(like_type)
        self._snapshot = None

    def apply(self) -> None:
        self._snapshot = self.state.snapshot()
        self.state.toggle(self.like_type)

    async def commit(self) -> Dict[str, Any]:
        result = await self.client.toggle_like(self.video_id, self.like_type)
        # The server's counts win over the local guess
        self.state.like_count = result["likeCount"]
        self.state.dislike_count = result["dislikeCount"]
        user_status = result.get("userStatus")
        self.state.status = LikeType(user_status) if user_status else None
        return result

    def compensate(self) -> None:
        self.state.restore(self._snapshot)


class WatchSession:
    """Everything a watch page shows for one video."""

    def __init__(self, client: VideoShareClient, video_id: str, signed_in: bool = False):
        self.client = client
        self.video_id = video_id
        self.signed_in = signed_in
        self.video: Optional[Dict[str, Any]] = None
        self.comments: List[Dict[str, Any]] = []
        self.reaction = ReactionState()
        # Replies fetched per top-level comment, and how many are shown
        self._replies: Dict[str, List[Dict[str, Any]]] = {}
        self._visible: Dict[str, int] = {}

    async def load(self) -> None:
        data = await self.client.get_video(self.video_id)
        self.video = data["video"]
        self.comments = data["comments"]
        self._replies = {comment["id"]: list(comment.get("replies") or []) for comment in self.comments}
        self._visible = {}

        status = None
        if self.signed_in:
            like_status = await self.client.get_like_status(self.video_id)
            if like_status["isLiked"]:
                status = LikeType.LIKE
            elif like_status["isDisliked"]:
                status = LikeType.DISLIKE
        self.reaction = ReactionState(
            status=status,
            like_count=self.video.get("likeCount", 0),
            dislike_count=self.video.get("dislikeCount", 0),
        )

    async def toggle_like(self, like_type: LikeType = LikeType.LIKE) -> Dict[str, Any]:
        result = await run_optimistic(LikeToggle(self.client, self.video_id, self.reaction, like_type))
        if self.video is not None:
            self.video["likeCount"] = self.reaction.like_count
            self.video["dislikeCount"] = self.reaction.dislike_count
        return result

    async def add_comment(self, content: str) -> Dict[str, Any]:
        comment = await self.client.add_comment(self.video_id, content)
        comment.setdefault("replies", [])
        comment.setdefault("replyCount", 0)
        self.comments.insert(0, comment)
        self._replies[comment["id"]] = []
        return comment

    async def add_reply(self, parent_id: str, content: str) -> Dict[str, Any]:
        reply = await self.client.add_comment(self.video_id, content, parent_id=parent_id)
        parent = self._find_comment(parent_id)
        if parent is not None:
            parent.setdefault("replies", []).append(reply)
            parent["replyCount"] = parent.get("replyCount", 0) + 1
            self._replies.setdefault(parent_id, []).append(reply)
        return reply

    async def fetch_all_replies(self, comment_id: str) -> List[Dict[str, Any]]:
        """Replace the preview with the full reply list for one comment."""
        replies = await self.client.list_replies(self.video_id, comment_id)
        self._replies[comment_id] = replies
        return replies

    def visible_replies(self, comment_id: str) -> List[Dict[str, Any]]:
        shown = self._visible.get(comment_id, REPLY_PREVIEW_COUNT)
        return self._replies.get(comment_id, [])[:shown]

    def show_more_replies(self, comment_id: str) -> List[Dict[str, Any]]:
        """Reveal the next ``REPLY_PREVIEW_COUNT`` already-fetched replies."""
        total = len(self._replies.get(comment_id, []))
        shown = self._visible.get(comment_id, REPLY_PREVIEW_COUNT)
        self._visible[comment_id] = min(total, shown + REPLY_PREVIEW_COUNT)
        return self.visible_replies(comment_id)

    def has_more_replies(self, comment_id: str) -> bool:
        return len(self._replies.get(comment_id, [])) > len(self.visible_replies(comment_id))

    def _find_comment(self, comment_id: str) -> Optional[Dict[str, Any]]:
        for comment in self.comments:
            if comment["id"] == comment_id:
                return comment
        return None
