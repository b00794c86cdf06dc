"""
Signature verification for identity-provider webhooks.

Deliveries are signed with the Svix scheme: HMAC-SHA256 over
``"{svix-id}.{svix-timestamp}.{body}"`` keyed with the base64 part of a
``whsec_`` secret, sent as one or more space-separated ``v1,<base64>`` values.
"""
import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Mapping, Optional

from server.web.app.errors import RequestValidationFailed, ServerError

SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
DEFAULT_TOLERANCE_SECONDS = 5 * 60


class WebhookVerificationError(RequestValidationFailed):
    message = "Invalid webhook signature"


class WebhookVerifier:
    """Verifies signed webhook deliveries and returns the decoded payload"""

    def __init__(self, secret: str, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS):
        if not secret:
            raise ServerError("Webhook secret not configured")
        if secret.startswith(SECRET_PREFIX):
            secret = secret[len(SECRET_PREFIX):]
        try:
            self.key = base64.b64decode(secret)
        except (binascii.Error, ValueError) as e:
            raise ServerError("Webhook secret is not valid base64") from e
        self.tolerance_seconds = tolerance_seconds

    def sign(self, msg_id: str, timestamp: int, body: bytes) -> str:
        to_sign = f"{msg_id}.{timestamp}.".encode() + body
        digest = hmac.new(self.key, to_sign, hashlib.sha256).digest()
        return f"{SIGNATURE_VERSION},{base64.b64encode(digest).decode()}"

    def verify(self, body: bytes, headers: Mapping[str, str], now: Optional[float] = None) -> Dict[str, Any]:
        msg_id = headers.get("svix-id")
        msg_timestamp = headers.get("svix-timestamp")
        msg_signature = headers.get("svix-signature")
        if not msg_id or not msg_timestamp or not msg_signature:
            raise WebhookVerificationError("Missing svix headers")

        try:
            timestamp = int(msg_timestamp)
        except ValueError as e:
            raise WebhookVerificationError("Invalid svix timestamp") from e

        now = time.time() if now is None else now
        if abs(now - timestamp) > self.tolerance_seconds:
            raise WebhookVerificationError("Webhook timestamp outside tolerance")

        expected = self.sign(msg_id, timestamp, body)
        for candidate in msg_signature.split():
            version, _, _ = candidate.partition(",")
            if version != SIGNATURE_VERSION:
                continue
            if hmac.compare_digest(candidate, expected):
                break
        else:
            raise WebhookVerificationError()

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise WebhookVerificationError("Webhook body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise WebhookVerificationError("Webhook body must be a JSON object")
        return payload
