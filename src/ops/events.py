from __future__ import annotations

import logging
import re
from contextvars import ContextVar, Token
from uuid import uuid4

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
REDACTED = "[REDACTED]"
CORRELATION_ID_HEADER = "x-request-id"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"
_correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def redact_text(value: str) -> str:
    return EMAIL_RE.sub(REDACTED, value)


def get_correlation_id() -> str | None:
    return _correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> Token[str | None]:
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token: Token[str | None]) -> None:
    _correlation_id_ctx.reset(token)


def new_correlation_id() -> str:
    return uuid4().hex


class RequestContextFilter(logging.Filter):
    """Stamp the active request id on every record and keep subscriber emails out of the logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id() or "-"
        message = record.getMessage()
        redacted = redact_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    for handler in root_logger.handlers:
        if any(isinstance(item, RequestContextFilter) for item in handler.filters):
            return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestContextFilter())
    root_logger.addHandler(handler)
