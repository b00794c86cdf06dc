"""
Application-wide dependencies for FastAPI.
"""
import logging
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings
from .errors import UnauthorizedError
from .services.logging_service import user_id_var
from .services.video_s3_service import VideoS3Service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings or get_settings()


def get_storage(request: Request) -> VideoS3Service:
    return request.app.state.storage


def _session_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials],
                   settings: Settings) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.AUTH_SESSION_COOKIE)


def decode_session_token(token: str, settings: Settings) -> str:
    """Verify a session JWT and return its subject (the user id)."""
    options = {"require": ["sub", "exp"]}
    kwargs = {}
    if settings.AUTH_JWT_ISSUER:
        kwargs["issuer"] = settings.AUTH_JWT_ISSUER
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_KEY,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            options=options,
            **kwargs,
        )
    except jwt.PyJWTError as e:
        logger.info("Rejected session token: %s", e)
        raise UnauthorizedError("Invalid or expired session") from e

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid or expired session")
    return str(user_id)


async def get_optional_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> Optional[str]:
    """The caller's user id, or None for anonymous or invalid sessions."""
    token = _session_token(request, credentials, settings)
    if not token:
        return None
    try:
        user_id = decode_session_token(token, settings)
    except UnauthorizedError:
        return None
    user_id_var.set(user_id)
    return user_id


async def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """The caller's user id; anonymous callers get 401."""
    token = _session_token(request, credentials, settings)
    if not token:
        raise UnauthorizedError()
    user_id = decode_session_token(token, settings)
    user_id_var.set(user_id)
    return user_id
