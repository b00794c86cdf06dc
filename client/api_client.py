"""
Async HTTP client for the VidShare API.
"""
import logging
from typing import Any, Dict, List, Optional, Union

import httpx

from shared_lib.schemas import (
    CommentCreateRequest, CreateVideoRequest, LikeType, ThumbnailUploadRequest,
    UpdateVideoRequest, VideoFileSchema, VideoQuery
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx response from the API (or from a presigned storage URL)."""

    def __init__(self, status_code: int, message: str, details: Optional[List[Dict[str, Any]]] = None):
        self.status_code = status_code
        self.message = message
        self.details = details or []
        super().__init__(f"{status_code}: {message}")


def _error_from_response(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or "Request failed"
    details = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or message
        details = body.get("details")
    elif response.text:
        message = response.text
    return ApiError(response.status_code, message, details)


class VideoShareClient:
    """
    Typed wrapper over the VidShare endpoints.

    ``session_token`` is the auth provider's session JWT; it is sent as a
    bearer token. Pass ``http_client`` to share a connection pool or to
    mount a test transport.
    """

    def __init__(self, base_url: str, session_token: Optional[str] = None,
                 http_client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        headers = {}
        if session_token:
            headers["Authorization"] = f"Bearer {session_token}"
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)
        self.base_url = base_url.rstrip("/")
        self.headers = headers

    async def __aenter__(self) -> "VideoShareClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self.http.request(
            method, f"{self.base_url}{path}", headers=self.headers, **kwargs
        )
        if response.is_error:
            error = _error_from_response(response)
            logger.debug("%s %s failed: %s", method, path, error)
            raise error
        if not response.content:
            return None
        return response.json()

    # Uploads

    async def request_video_upload(self, file: VideoFileSchema) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/upload/presigned-url", json=file.model_dump(by_alias=True)
        )

    async def request_thumbnail_upload(self, request: ThumbnailUploadRequest) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/upload/thumbnail", json=request.model_dump(by_alias=True)
        )

    async def put_object(self, upload_url: str, content: Union[bytes, Any], content_type: str) -> None:
        """PUT bytes to a presigned storage URL (no API auth headers)."""
        response = await self.http.put(upload_url, content=content, headers={"Content-Type": content_type})
        if response.is_error:
            raise ApiError(response.status_code, "Upload to storage failed")

    # Videos

    async def create_video(self, request: CreateVideoRequest) -> Dict[str, Any]:
        data = await self._request(
            "POST", "/api/videos", json=request.model_dump(mode="json", by_alias=True)
        )
        return data["video"]

    async def list_videos(self, query: Optional[VideoQuery] = None) -> Dict[str, Any]:
        query = query or VideoQuery()
        params = query.model_dump(mode="json", by_alias=True, exclude_none=True)
        for key, value in params.items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
        return await self._request("GET", "/api/videos", params=params)

    async def get_video(self, video_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/videos/{video_id}")

    async def update_video(self, video_id: str, request: UpdateVideoRequest) -> Dict[str, Any]:
        data = await self._request(
            "PATCH", f"/api/videos/{video_id}",
            json=request.model_dump(by_alias=True, exclude_unset=True),
        )
        return data["video"]

    async def delete_video(self, video_id: str) -> None:
        await self._request("DELETE", f"/api/videos/{video_id}")

    # Likes

    async def toggle_like(self, video_id: str, like_type: LikeType) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/api/videos/{video_id}/like", json={"type": LikeType(like_type).value}
        )

    async def get_like_status(self, video_id: str) -> Dict[str, bool]:
        return await self._request("GET", f"/api/videos/{video_id}/like")

    # Comments

    async def list_comments(self, video_id: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"/api/videos/{video_id}/comments")
        return data["comments"]

    async def add_comment(self, video_id: str, content: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        request = CommentCreateRequest(content=content, parent_id=parent_id)
        data = await self._request(
            "POST", f"/api/videos/{video_id}/comments",
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return data["comment"]

    async def list_replies(self, video_id: str, comment_id: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", f"/api/videos/{video_id}/comments/{comment_id}/replies")
        return data["comments"]

    async def update_comment(self, video_id: str, comment_id: str, content: str) -> Dict[str, Any]:
        data = await self._request(
            "PATCH", f"/api/videos/{video_id}/comments/{comment_id}", json={"content": content}
        )
        return data["comment"]

    async def delete_comment(self, video_id: str, comment_id: str) -> None:
        await self._request("DELETE", f"/api/videos/{video_id}/comments/{comment_id}")
