"""
Logging Service for VidShare
Structured JSON logging with per-request correlation ids.
"""

import json
import logging
import logging.config
import sys
import time
import traceback
from contextvars import ContextVar
from typing import Any, Dict, Optional

from shared_lib.utils import generate_request_id, utc_now

# Context variables for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

REQUEST_ID_HEADER = "X-Request-ID"

_RESERVED_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'exc_info', 'exc_text',
    'stack_info', 'taskName', 'message', 'asctime',
])


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': utc_now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data['request_id'] = request_id

        user_id = user_id_var.get()
        if user_id:
            log_data['user_id'] = user_id

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info),
            }

        # Anything passed through ``extra=``
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_data['extra'] = extra_fields

        return json.dumps(log_data, default=str, ensure_ascii=False)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure the root logger to write to stdout in ``json`` or ``text`` format."""
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'json': {
                '()': JSONFormatter,
            },
            'text': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'json' if fmt == 'json' else 'text',
                'stream': sys.stdout,
            },
        },
        'loggers': {
            'uvicorn.access': {
                # Requests are already logged by LoggingMiddleware
                'level': 'WARNING',
            },
            'sqlalchemy': {
                'level': 'WARNING',
            },
        },
        'root': {
            'level': level.upper(),
            'handlers': ['console'],
        },
    }
    logging.config.dictConfig(config)


def set_request_context(request_id: str, user_id: Optional[str] = None) -> None:
    request_id_var.set(request_id)
    if user_id:
        user_id_var.set(user_id)


def clear_request_context() -> None:
    request_id_var.set(None)
    user_id_var.set(None)


class LoggingMiddleware:
    """ASGI middleware: assigns a request id and logs every request once"""

    def __init__(self, app):
        self.app = app
        self.logger = logging.getLogger("vidshare.api")

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        incoming = headers.get(REQUEST_ID_HEADER.lower().encode())
        request_id = incoming.decode("latin-1") if incoming else generate_request_id()
        start_time = time.perf_counter()

        set_request_context(request_id)
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + [
                    (REQUEST_ID_HEADER.lower().encode(), request_id.encode("latin-1"))
                ]
                self.logger.info(
                    "%s %s - %s (%sms)", scope["method"], scope["path"], message["status"], duration_ms,
                    extra={
                        'event_type': 'api_request',
                        'method': scope["method"],
                        'endpoint': scope["path"],
                        'status_code': message["status"],
                        'duration_ms': duration_ms,
                    },
                )
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            clear_request_context()
