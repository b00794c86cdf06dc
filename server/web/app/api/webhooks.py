"""
Identity-provider webhook endpoint.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..db import get_db
from ..dependencies import get_app_settings
from ..services.user_sync_service import UserSyncService
from ..services.webhook_verifier import WebhookVerifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/identity", response_class=PlainTextResponse)
async def identity_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    db: AsyncSession = Depends(get_db),
):
    """Apply a signed user lifecycle event from the identity provider."""
    verifier = WebhookVerifier(settings.WEBHOOK_SECRET, settings.WEBHOOK_TOLERANCE_SECONDS)
    body = await request.body()
    event = verifier.verify(body, request.headers)

    result = await UserSyncService(db).handle_event(event)
    logger.info("Webhook %s %s", event.get("type"), result)
    return "OK"


@router.get("/identity", response_class=PlainTextResponse)
async def identity_webhook_check():
    return "Webhook endpoint is working!"
