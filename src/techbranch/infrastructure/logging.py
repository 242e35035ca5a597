"""Shared logging configuration helpers for the API and RPC processes."""

from __future__ import annotations

import logging
import re

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_BEARER_PATTERN = re.compile(r"(?i)(bearer\s+)[A-Za-z0-9\-_.=+/]+")
REDACTED = "[redacted]"


class BearerTokenRedactingFilter(logging.Filter):
    """Mask bearer credentials that end up in formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER_PATTERN.sub(rf"\g<1>{REDACTED}", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def configure_logging(*, level: str) -> None:
    """Configure process logging with consistent format, runtime level and redaction."""

    normalized_level = level.strip().upper() if level.strip() else "INFO"
    resolved_level = getattr(logging, normalized_level, logging.INFO)

    logging.basicConfig(
        level=resolved_level,
        format=_LOG_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(item, BearerTokenRedactingFilter) for item in handler.filters):
            handler.addFilter(BearerTokenRedactingFilter())
