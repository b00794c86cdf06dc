"""
Tests for video likes service.
"""
import pytest
from sqlalchemy import select

from shared_lib.schemas import LikeType
from server.web.app.errors import NotFoundError
from server.web.app.models import Like
from server.web.app.services.video_likes_service import VideoLikesService
from tests.conftest import create_video


async def reactions(db_session, video_id):
    result = await db_session.execute(
        select(Like).where(Like.video_id == video_id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


class TestVideoLikesService:
    """Test video likes service functionality."""

    async def test_first_like_creates_row(self, db_session, bob, video):
        result = await VideoLikesService(db_session).toggle(video.id, bob.id, LikeType.LIKE)

        assert result["action"] == "created"
        assert result["message"] == "Video liked"
        assert result["like_count"] == 1
        assert result["dislike_count"] == 0
        assert result["user_status"] == LikeType.LIKE
        assert len(await reactions(db_session, video.id)) == 1

    async def test_same_reaction_twice_removes_it(self, db_session, bob, video):
        service = VideoLikesService(db_session)
        await service.toggle(video.id, bob.id, LikeType.LIKE)
        result = await service.toggle(video.id, bob.id, LikeType.LIKE)

        assert result["action"] == "removed"
        assert result["like_count"] == 0
        assert result["user_status"] is None
        assert await reactions(db_session, video.id) == []

    async def test_switching_updates_single_row(self, db_session, bob, video):
        service = VideoLikesService(db_session)
        await service.toggle(video.id, bob.id, LikeType.LIKE)
        result = await service.toggle(video.id, bob.id, LikeType.DISLIKE)

        assert result["action"] == "updated"
        assert result["message"] == "Changed to dislike"
        assert result["like_count"] == 0
        assert result["dislike_count"] == 1
        rows = await reactions(db_session, video.id)
        assert len(rows) == 1
        assert rows[0].type == LikeType.DISLIKE

    async def test_dislike_toggle_round_trip(self, db_session, bob, video):
        service = VideoLikesService(db_session)
        await service.toggle(video.id, bob.id, LikeType.DISLIKE)
        result = await service.toggle(video.id, bob.id, LikeType.DISLIKE)
        assert result["action"] == "removed"
        assert result["message"] == "Dislike removed"

    async def test_counts_across_users(self, db_session, alice, bob, video):
        service = VideoLikesService(db_session)
        await service.toggle(video.id, alice.id, LikeType.LIKE)
        result = await service.toggle(video.id, bob.id, LikeType.LIKE)
        assert result["like_count"] == 2

    async def test_unknown_video(self, db_session, bob):
        with pytest.raises(NotFoundError):
            await VideoLikesService(db_session).toggle("missing", bob.id, LikeType.LIKE)

    async def test_unsynced_user(self, db_session, video):
        with pytest.raises(NotFoundError) as exc_info:
            await VideoLikesService(db_session).toggle(video.id, "user_unsynced", LikeType.LIKE)
        assert exc_info.value.message == "User not found"

    async def test_status(self, db_session, bob, video):
        service = VideoLikesService(db_session)
        assert await service.get_status(video.id, None) == {"is_liked": False, "is_disliked": False}
        assert await service.get_status(video.id, bob.id) == {"is_liked": False, "is_disliked": False}

        await service.toggle(video.id, bob.id, LikeType.DISLIKE)
        assert await service.get_status(video.id, bob.id) == {"is_liked": False, "is_disliked": True}

    async def test_status_unknown_video(self, db_session):
        with pytest.raises(NotFoundError):
            await VideoLikesService(db_session).get_status("missing", None)

    async def test_private_video_hidden_from_other_users(self, db_session, alice, bob):
        await create_video(db_session, alice, "hidden", is_public=False)
        service = VideoLikesService(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            await service.toggle("hidden", bob.id, LikeType.LIKE)
        assert exc_info.value.message == "Video not found"
        for viewer in (bob.id, None):
            with pytest.raises(NotFoundError):
                await service.get_status("hidden", viewer)
        assert await reactions(db_session, "hidden") == []

        result = await service.toggle("hidden", alice.id, LikeType.LIKE)
        assert result["action"] == "created"
        assert await service.get_status("hidden", alice.id) == {"is_liked": True, "is_disliked": False}
