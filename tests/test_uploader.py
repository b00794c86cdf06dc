"""
Tests for the client upload pipeline against a mocked API and storage.
"""
import json

import httpx
import pytest

from client.api_client import VideoShareClient
from client.thumbnails import ThumbnailOption
from client.uploader import UploadError, UploadStep, VideoUploader, default_title

API = "http://api.test"
STORAGE = "https://test-bucket.s3.us-east-1.amazonaws.com"


class FakeBackend:
    """Answers the four upload requests and records every call."""

    def __init__(self, fail: str = None):
        self.fail = fail
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if self.fail == path:
            return httpx.Response(500, json={"error": "Boom"})

        if path == "/api/upload/presigned-url":
            return httpx.Response(200, json={
                "uploadUrl": f"{STORAGE}/videos/raw/abc.mp4?X-Amz-Signature=x",
                "videoUrl": f"{STORAGE}/videos/raw/abc.mp4",
                "videoId": "abc",
                "s3Key": "videos/raw/abc.mp4",
                "expiresIn": 600,
            })
        if path == "/api/upload/thumbnail":
            return httpx.Response(200, json={
                "uploadUrl": f"{STORAGE}/videos/thumbnails/abc.jpg?X-Amz-Signature=y",
                "thumbnailUrl": f"{STORAGE}/videos/thumbnails/abc.jpg",
                "s3Key": "videos/thumbnails/abc.jpg",
                "expiresIn": 600,
            })
        if request.method == "PUT":
            return httpx.Response(200)
        if path == "/api/videos":
            body = json.loads(request.content)
            return httpx.Response(201, json={"success": True, "video": dict(body, id=body["videoId"])})
        return httpx.Response(404, json={"error": "Not found"})

    def calls(self):
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture
def video_path(tmp_path):
    path = tmp_path / "holiday clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 1024)
    return path


def make_uploader(backend: FakeBackend) -> VideoUploader:
    http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
    return VideoUploader(VideoShareClient(API, session_token="tok", http_client=http))


class TestVideoUploader:
    async def test_steps_run_in_order(self, video_path):
        backend = FakeBackend()
        progress = []
        thumbnail = ThumbnailOption(file_name="thumbnail_00_00_01.jpg", data=b"\xff\xd8jpeg")

        video = await make_uploader(backend).upload(
            video_path, description="  Beach day ", thumbnail=thumbnail, on_progress=progress.append
        )

        assert backend.calls() == [
            ("POST", "/api/upload/presigned-url"),
            ("PUT", "/videos/raw/abc.mp4"),
            ("POST", "/api/upload/thumbnail"),
            ("PUT", "/videos/thumbnails/abc.jpg"),
            ("POST", "/api/videos"),
        ]
        assert progress == [0, 90, 95, 100]
        assert video["title"] == "holiday clip"
        assert video["description"] == "Beach day"
        assert video["thumbnailUrl"] == f"{STORAGE}/videos/thumbnails/abc.jpg"

    async def test_storage_put_has_no_api_credentials(self, video_path):
        backend = FakeBackend()
        await make_uploader(backend).upload(video_path, title="Clip")

        presign, put, create = backend.requests
        assert presign.headers["Authorization"] == "Bearer tok"
        assert "Authorization" not in put.headers
        assert put.headers["Content-Type"] == "video/mp4"
        assert json.loads(create.content)["thumbnailUrl"] is None

    async def test_failed_put_stops_before_metadata(self, video_path):
        backend = FakeBackend(fail="/videos/raw/abc.mp4")

        with pytest.raises(UploadError) as exc_info:
            await make_uploader(backend).upload(video_path, title="Clip")

        assert exc_info.value.step == UploadStep.UPLOAD_VIDEO
        assert ("POST", "/api/videos") not in backend.calls()

    async def test_server_error_message_is_surfaced(self, video_path):
        backend = FakeBackend(fail="/api/upload/presigned-url")
        with pytest.raises(UploadError) as exc_info:
            await make_uploader(backend).upload(video_path, title="Clip")
        assert exc_info.value.step == UploadStep.PRESIGN_VIDEO
        assert exc_info.value.message == "Boom"

    async def test_oversized_file_never_reaches_the_network(self, tmp_path):
        path = tmp_path / "huge.mp4"
        with open(path, "wb") as f:
            f.truncate(200 * 1024 * 1024)
        backend = FakeBackend()

        with pytest.raises(UploadError) as exc_info:
            await make_uploader(backend).upload(path)

        assert exc_info.value.step == UploadStep.VALIDATE
        assert exc_info.value.message == "File size must be less than 100MB"
        assert backend.requests == []

    async def test_unsupported_type(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(UploadError, match="Unsupported video format"):
            await make_uploader(FakeBackend()).upload(path)

    async def test_missing_file(self, tmp_path):
        with pytest.raises(UploadError) as exc_info:
            await make_uploader(FakeBackend()).upload(tmp_path / "gone.mp4")
        assert exc_info.value.step == UploadStep.VALIDATE


def test_default_title():
    assert default_title("/videos/My.Trip.mp4") == "My.Trip"
