"""
Paginated video feed and the display fields of a video card.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from shared_lib.schemas import DEFAULT_PAGE_LIMIT, VideoQuery
from shared_lib.utils import format_duration, format_time_ago, format_views
from client.api_client import VideoShareClient


class VideoFeed:
    """Public videos, newest first, fetched a page at a time."""

    def __init__(self, client: VideoShareClient, limit: int = DEFAULT_PAGE_LIMIT):
        self.client = client
        self.limit = limit
        self.videos: List[Dict[str, Any]] = []
        self.page = 0
        self.has_more = False
        self.total = 0
        self.search = ""

    async def fetch(self, reset: bool = False, offset: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Fetch the page at ``offset`` (default: the current page).

        Paging state only changes once the request succeeds, so a failed
        ``load_more`` can simply be retried.
        """
        if reset:
            offset = 0
        elif offset is None:
            offset = self.page * self.limit
        query = VideoQuery(
            limit=self.limit,
            offset=offset,
            is_public=True,
            search=self.search or None,
        )
        data = await self.client.list_videos(query)

        self.videos = data["videos"] if reset else self.videos + data["videos"]
        self.page = offset // self.limit
        self.has_more = data["pagination"]["hasMore"]
        self.total = data["pagination"]["total"]
        return self.videos

    async def load_more(self) -> List[Dict[str, Any]]:
        if not self.has_more:
            return self.videos
        return await self.fetch(offset=(self.page + 1) * self.limit)

    async def refresh(self) -> List[Dict[str, Any]]:
        return await self.fetch(reset=True)

    async def update_search(self, query: str) -> List[Dict[str, Any]]:
        self.search = query.strip()
        return await self.refresh()


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def video_card(video: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Display strings for one feed entry."""
    user = video.get("user") or {}
    created_at = _parse_datetime(video.get("createdAt"))
    duration = video.get("duration")
    return {
        "id": video["id"],
        "title": video["title"],
        "thumbnail_url": video.get("thumbnailUrl"),
        "duration": format_duration(duration) if duration else None,
        "views": format_views(video.get("views", 0)),
        "likes": video.get("likeCount", 0),
        "age": format_time_ago(created_at, now) if created_at else "",
        "channel": user.get("channelName") or user.get("displayName") or user.get("username") or "",
        "avatar": user.get("avatar"),
    }
