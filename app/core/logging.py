"""JSON logging with request-id correlation.

Modules keep using ``logging.getLogger(__name__)``; this module only installs
a root handler whose records carry the id of the request being served.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

from pythonjsonlogger.json import JsonFormatter

if TYPE_CHECKING:
    from app.core.config import Settings

REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_ID_MAX_LEN = 128
EMAIL_VISIBLE_CHARS = 3

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

_HANDLER_NAME = "academy-root"


def get_request_id() -> str | None:
    return _request_id.get()


def bind_request_id(request_id: str | None = None) -> Token:
    """Bind a request id (generated when absent or unusable) to the current context."""
    if not request_id or len(request_id) > REQUEST_ID_MAX_LEN or not request_id.isprintable():
        request_id = str(uuid.uuid4())
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


class RequestContextFilter(logging.Filter):
    """Stamp every record with the current request id (or None outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()
        return True


def redact_email(email: str | None) -> str:
    """Keep the first 3 characters of an email for audit lines, mask the rest."""
    if not email:
        return "***"
    return email[:EMAIL_VISIBLE_CHARS] + "***"


def configure_logging(settings: Settings) -> None:
    """Install the root JSON handler. Safe to call more than once."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    if settings.LOG_JSON:
        handler.setFormatter(
            JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
                rename_fields={"levelname": "level", "asctime": "timestamp"},
                static_fields={
                    "service": settings.SERVICE_NAME,
                    "environment": settings.APP_ENV,
                },
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%SZ",
            )
        )
    handler.addFilter(RequestContextFilter())
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL)
