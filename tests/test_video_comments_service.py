"""
Tests for video comments service.
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from shared_lib.schemas import CommentCreateRequest, CommentUpdateRequest
from shared_lib.utils import utc_now
from server.web.app.errors import ForbiddenError, NotFoundError, RequestValidationFailed
from server.web.app.models import Comment
from server.web.app.services.video_comments_service import VideoCommentsService
from tests.conftest import create_video


def comment(content: str, parent_id: str = None) -> CommentCreateRequest:
    return CommentCreateRequest(content=content, parent_id=parent_id)


class TestCreateComment:
    async def test_top_level_comment(self, db_session, bob, video):
        created = await VideoCommentsService(db_session).create_comment(video.id, bob.id, comment(" Great! "))
        assert created["content"] == "Great!"
        assert created["parent_id"] is None
        assert created["user"]["id"] == bob.id
        assert created["reply_count"] == 0

    async def test_reply_to_top_level(self, db_session, alice, bob, video):
        service = VideoCommentsService(db_session)
        parent = await service.create_comment(video.id, bob.id, comment("Question?"))
        reply = await service.create_comment(video.id, alice.id, comment("Answer", parent["id"]))
        assert reply["parent_id"] == parent["id"]

    async def test_reply_to_reply_rejected(self, db_session, alice, bob, video):
        service = VideoCommentsService(db_session)
        parent = await service.create_comment(video.id, bob.id, comment("Top"))
        reply = await service.create_comment(video.id, alice.id, comment("Reply", parent["id"]))

        with pytest.raises(RequestValidationFailed):
            await service.create_comment(video.id, bob.id, comment("Nested", reply["id"]))

    async def test_parent_on_another_video_rejected(self, db_session, alice, bob, video):
        other = await create_video(db_session, alice, "other")
        service = VideoCommentsService(db_session)
        parent = await service.create_comment(other.id, bob.id, comment("Elsewhere"))

        with pytest.raises(RequestValidationFailed):
            await service.create_comment(video.id, bob.id, comment("Cross", parent["id"]))

    async def test_unknown_parent(self, db_session, bob, video):
        with pytest.raises(NotFoundError):
            await VideoCommentsService(db_session).create_comment(video.id, bob.id, comment("x", "missing"))

    async def test_unknown_video(self, db_session, bob):
        with pytest.raises(NotFoundError):
            await VideoCommentsService(db_session).create_comment("missing", bob.id, comment("x"))


class TestListComments:
    async def test_newest_first_with_reply_preview(self, db_session, alice, bob, video):
        base = utc_now() - timedelta(hours=1)
        older = Comment(id="c-old", video_id=video.id, user_id=bob.id, content="old", created_at=base)
        newer = Comment(id="c-new", video_id=video.id, user_id=bob.id, content="new",
                        created_at=base + timedelta(minutes=5))
        db_session.add_all([older, newer])
        for i in range(5):
            db_session.add(Comment(
                id=f"r{i}", video_id=video.id, user_id=alice.id, parent_id="c-old",
                content=f"reply {i}", created_at=base + timedelta(minutes=10 + i),
            ))
        await db_session.commit()

        comments = await VideoCommentsService(db_session).list_comments(video.id)

        assert [c["id"] for c in comments] == ["c-new", "c-old"]
        assert comments[1]["reply_count"] == 5
        assert [r["id"] for r in comments[1]["replies"]] == ["r0", "r1", "r2"]
        assert comments[0]["replies"] == []

    async def test_all_replies_oldest_first(self, db_session, alice, bob, video):
        service = VideoCommentsService(db_session)
        parent = await service.create_comment(video.id, bob.id, comment("Top"))
        for i in range(4):
            await service.create_comment(video.id, alice.id, comment(f"reply {i}", parent["id"]))

        replies = await service.list_replies(video.id, parent["id"])
        assert [r["content"] for r in replies] == ["reply 0", "reply 1", "reply 2", "reply 3"]

    async def test_private_video_comments_hidden(self, db_session, alice, bob):
        await create_video(db_session, alice, "hidden", is_public=False)
        with pytest.raises(NotFoundError):
            await VideoCommentsService(db_session).list_comments("hidden", viewer_id=bob.id)


class TestEditAndDelete:
    async def test_author_edits(self, db_session, bob, video):
        service = VideoCommentsService(db_session)
        created = await service.create_comment(video.id, bob.id, comment("typo"))
        updated = await service.update_comment(video.id, created["id"], bob.id,
                                               CommentUpdateRequest(content="fixed"))
        assert updated["content"] == "fixed"

    async def test_non_author_cannot_edit_or_delete(self, db_session, alice, bob, video):
        service = VideoCommentsService(db_session)
        created = await service.create_comment(video.id, bob.id, comment("mine"))
        with pytest.raises(ForbiddenError):
            await service.update_comment(video.id, created["id"], alice.id, CommentUpdateRequest(content="no"))
        with pytest.raises(ForbiddenError):
            await service.delete_comment(video.id, created["id"], alice.id)

    async def test_delete_removes_replies(self, db_session, alice, bob, video):
        service = VideoCommentsService(db_session)
        parent = await service.create_comment(video.id, bob.id, comment("Top"))
        await service.create_comment(video.id, alice.id, comment("Reply", parent["id"]))

        await service.delete_comment(video.id, parent["id"], bob.id)

        remaining = await db_session.execute(select(Comment.id))
        assert remaining.all() == []

    async def test_comment_must_belong_to_video(self, db_session, alice, bob, video):
        other = await create_video(db_session, alice, "other")
        service = VideoCommentsService(db_session)
        created = await service.create_comment(other.id, bob.id, comment("there"))
        with pytest.raises(NotFoundError):
            await service.delete_comment(video.id, created["id"], bob.id)


class TestPrivateVideoComments:
    async def test_only_owner_can_comment_and_read_replies(self, db_session, alice, bob):
        await create_video(db_session, alice, "hidden", is_public=False)
        service = VideoCommentsService(db_session)
        parent = await service.create_comment("hidden", alice.id, comment("Notes to self"))
        await service.create_comment("hidden", alice.id, comment("More notes", parent["id"]))

        with pytest.raises(NotFoundError) as exc_info:
            await service.create_comment("hidden", bob.id, comment("Found it"))
        assert exc_info.value.message == "Video not found"

        for viewer in (bob.id, None):
            with pytest.raises(NotFoundError):
                await service.list_replies("hidden", parent["id"], viewer_id=viewer)

        replies = await service.list_replies("hidden", parent["id"], viewer_id=alice.id)
        assert [r["content"] for r in replies] == ["More notes"]
