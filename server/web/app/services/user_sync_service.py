"""
Keeps the local users table in step with the identity provider.
"""
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from server.web.app.errors import RequestValidationFailed, ServerError
from server.web.app.models import User
from server.web.app.services.base_service import BaseService

UPSERT_EVENTS = ("user.created", "user.updated")
DELETE_EVENT = "user.deleted"


def format_display_name(first_name: Optional[str], last_name: Optional[str],
                        username: Optional[str]) -> str:
    if first_name and last_name:
        return f"{first_name} {last_name}"
    return first_name or username or "Anonymous"


def user_fields_from_event(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map an identity-provider user payload onto ``User`` columns."""
    user_id = data.get("id")
    if not user_id:
        raise RequestValidationFailed("Webhook user payload has no id")

    email_addresses = data.get("email_addresses") or []
    email = ""
    if email_addresses:
        email = email_addresses[0].get("email_address") or ""

    username = data.get("username")
    return {
        "id": user_id,
        "email": email,
        "username": username or user_id,
        "display_name": format_display_name(data.get("first_name"), data.get("last_name"), username),
        "avatar": data.get("image_url"),
    }


class UserSyncService(BaseService):
    """Applies user lifecycle events to the users table."""

    def __init__(self, db: AsyncSession):
        super().__init__(db)

    async def handle_event(self, event: Dict[str, Any]) -> str:
        """Apply one event and return what was done: upserted, deleted or ignored."""
        event_type = event.get("type")
        data = event.get("data") or {}

        try:
            if event_type in UPSERT_EVENTS:
                await self.upsert_user(user_fields_from_event(data))
                return "upserted"
            if event_type == DELETE_EVENT:
                if not data.get("id"):
                    raise RequestValidationFailed("Webhook user payload has no id")
                await self.delete_user(data["id"])
                return "deleted"
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error("Failed to apply %s event", event_type, exc_info=e)
            raise ServerError("Database error") from e

        self.logger.debug("Ignoring webhook event %s", event_type)
        return "ignored"

    async def upsert_user(self, fields: Dict[str, Any]) -> User:
        user = await self.db.get(User, fields["id"])
        if user is None:
            user = User(**fields)
            self.db.add(user)
        else:
            for key, value in fields.items():
                setattr(user, key, value)
        await self.db.commit()
        self.logger.info("Synced user %s", fields["id"])
        return user

    async def delete_user(self, user_id: str) -> bool:
        """Delete a user and everything they own; deleting a missing user is a no-op."""
        user = await self.db.get(User, user_id)
        if user is None:
            return False
        await self.db.delete(user)
        await self.db.commit()
        self.logger.info("Deleted user %s", user_id)
        return True
