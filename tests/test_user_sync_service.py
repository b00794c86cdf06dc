"""
Tests for identity-provider user synchronisation.
"""
import pytest
from sqlalchemy import select

from server.web.app.errors import RequestValidationFailed
from server.web.app.models import User, Video
from server.web.app.services.user_sync_service import (
    UserSyncService, format_display_name, user_fields_from_event
)
from tests.conftest import create_video


def user_event(event_type: str = "user.created", **data) -> dict:
    payload = {
        "id": "user_new",
        "email_addresses": [{"email_address": "new@example.com"}],
        "username": "newbie",
        "first_name": "Nora",
        "last_name": "New",
        "image_url": "https://img.example.com/nora.png",
    }
    payload.update(data)
    return {"type": event_type, "data": payload}


def test_format_display_name():
    assert format_display_name("Ada", "Lovelace", "ada") == "Ada Lovelace"
    assert format_display_name("Ada", None, "ada") == "Ada"
    assert format_display_name(None, "Lovelace", "ada") == "ada"
    assert format_display_name(None, None, None) == "Anonymous"


def test_user_fields_from_event_defaults():
    fields = user_fields_from_event({"id": "user_x", "email_addresses": []})
    assert fields == {
        "id": "user_x",
        "email": "",
        "username": "user_x",
        "display_name": "Anonymous",
        "avatar": None,
    }


def test_user_fields_require_id():
    with pytest.raises(RequestValidationFailed):
        user_fields_from_event({"username": "nobody"})


class TestUserSyncService:
    async def test_created_event_inserts_user(self, db_session):
        result = await UserSyncService(db_session).handle_event(user_event())

        assert result == "upserted"
        user = await db_session.get(User, "user_new")
        assert user.email == "new@example.com"
        assert user.display_name == "Nora New"
        assert user.avatar == "https://img.example.com/nora.png"

    async def test_updated_event_overwrites_fields(self, db_session):
        service = UserSyncService(db_session)
        await service.handle_event(user_event())
        await service.handle_event(user_event("user.updated", username="nora", first_name="Nora", last_name=None))

        user = await db_session.get(User, "user_new")
        await db_session.refresh(user)
        assert user.username == "nora"
        assert user.display_name == "Nora"

    async def test_deleted_event_removes_user_and_videos(self, db_session, alice):
        await create_video(db_session, alice, "v-alice")

        result = await UserSyncService(db_session).handle_event(
            {"type": "user.deleted", "data": {"id": alice.id, "deleted": True}}
        )

        assert result == "deleted"
        assert await db_session.get(User, alice.id) is None
        assert (await db_session.execute(select(Video.id))).all() == []

    async def test_deleting_unknown_user_is_a_no_op(self, db_session):
        result = await UserSyncService(db_session).handle_event({"type": "user.deleted", "data": {"id": "ghost"}})
        assert result == "deleted"

    async def test_other_events_are_ignored(self, db_session):
        result = await UserSyncService(db_session).handle_event({"type": "session.created", "data": {}})
        assert result == "ignored"
        assert (await db_session.execute(select(User.id))).all() == []
