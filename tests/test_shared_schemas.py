"""
Tests for the validation schemas shared by server and client.
"""
import pytest
from pydantic import ValidationError

from shared_lib.schemas import (
    MAX_THUMBNAIL_SIZE, MAX_VIDEO_SIZE, MB, CommentCreateRequest, CreateVideoRequest,
    LikeRequest, ThumbnailFileSchema, UpdateVideoRequest, VideoDetailsSchema,
    VideoFileSchema, VideoQuery, VideoSortOrder, file_extension, validation_details
)


def messages(exc_info) -> list:
    return [detail["message"] for detail in validation_details(exc_info.value)]


class TestVideoFileSchema:
    def test_accepts_valid_video(self):
        file = VideoFileSchema(fileName="holiday.mp4", fileType="video/mp4", fileSize=10 * MB)
        assert file.file_name == "holiday.mp4"
        assert file.extension == "mp4"

    def test_accepts_exactly_the_size_limit(self):
        file = VideoFileSchema(file_name="a.webm", file_type="video/webm", file_size=MAX_VIDEO_SIZE)
        assert file.file_size == MAX_VIDEO_SIZE

    def test_rejects_oversize_video_with_message(self):
        with pytest.raises(ValidationError) as exc_info:
            VideoFileSchema(file_name="big.mp4", file_type="video/mp4", file_size=200 * MB)
        assert messages(exc_info) == ["File size must be less than 100MB"]

    def test_rejects_empty_file(self):
        with pytest.raises(ValidationError) as exc_info:
            VideoFileSchema(file_name="empty.mp4", file_type="video/mp4", file_size=0)
        assert messages(exc_info) == ["File size is required"]

    @pytest.mark.parametrize("file_type", ["video/x-matroska", "image/png", ""])
    def test_rejects_unsupported_types(self, file_type):
        with pytest.raises(ValidationError):
            VideoFileSchema(file_name="clip.mkv", file_type=file_type, file_size=MB)

    @pytest.mark.parametrize("file_name", ["a<b.mp4", "dir/clip.mp4", "what?.mp4", "x" * 256])
    def test_rejects_bad_file_names(self, file_name):
        with pytest.raises(ValidationError):
            VideoFileSchema(file_name=file_name, file_type="video/mp4", file_size=MB)


class TestThumbnailFileSchema:
    def test_rejects_oversize_thumbnail_with_message(self):
        with pytest.raises(ValidationError) as exc_info:
            ThumbnailFileSchema(file_name="t.jpg", file_type="image/jpeg", file_size=MAX_THUMBNAIL_SIZE + 1)
        assert messages(exc_info) == ["Thumbnail must be less than 5MB"]

    def test_rejects_video_type(self):
        with pytest.raises(ValidationError) as exc_info:
            ThumbnailFileSchema(file_name="t.mp4", file_type="video/mp4", file_size=1000)
        assert messages(exc_info) == ["Unsupported image format"]


class TestVideoDetails:
    def test_title_is_trimmed(self):
        details = VideoDetailsSchema(title="  My trip  ")
        assert details.title == "My trip"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            VideoDetailsSchema(title="   ")
        assert messages(exc_info) == ["Title is required"]

    def test_title_length_limit(self):
        VideoDetailsSchema(title="x" * 200)
        with pytest.raises(ValidationError):
            VideoDetailsSchema(title="x" * 201)

    def test_description_length_limit(self):
        VideoDetailsSchema(title="ok", description="d" * 5000)
        with pytest.raises(ValidationError):
            VideoDetailsSchema(title="ok", description="d" * 5001)

    def test_create_request_requires_http_urls(self):
        with pytest.raises(ValidationError):
            CreateVideoRequest(video_id="abc", title="t", video_url="not a url")
        request = CreateVideoRequest(videoId="abc", title="t", videoUrl="https://cdn.example.com/v.mp4")
        assert request.thumbnail_url is None

    def test_update_request_allows_partial_changes(self):
        request = UpdateVideoRequest(isPublic=False)
        assert request.model_dump(exclude_unset=True) == {"is_public": False}


class TestQueryAndInteractions:
    def test_query_defaults(self):
        query = VideoQuery()
        assert query.limit == 12
        assert query.offset == 0
        assert query.sort_by == VideoSortOrder.newest

    @pytest.mark.parametrize("limit", [0, 51])
    def test_query_limit_bounds(self, limit):
        with pytest.raises(ValidationError):
            VideoQuery(limit=limit)

    def test_like_type_must_be_known(self):
        assert LikeRequest(type="DISLIKE").type.value == "DISLIKE"
        with pytest.raises(ValidationError):
            LikeRequest(type="LOVE")

    def test_comment_content_trimmed_and_bounded(self):
        assert CommentCreateRequest(content="  nice  ").content == "nice"
        with pytest.raises(ValidationError) as exc_info:
            CommentCreateRequest(content="   ")
        assert messages(exc_info) == ["Comment cannot be empty"]
        with pytest.raises(ValidationError):
            CommentCreateRequest(content="c" * 2001)

    def test_file_extension(self):
        assert file_extension("a.b.mov") == "mov"
        assert file_extension("noext") == "noext"
