"""Logging setup and redaction.

vaultpad never logs content, passwords or keys on purpose. The filter is a
second line of defence that scrubs envelope fields and ``password=`` /
``key=`` assignments should one ever end up in a record.
"""

from __future__ import annotations

import logging
import re

SECRET_PATTERNS = [
    (re.compile(r'("(?:salt|iv|data)"\s*:\s*")[A-Za-z0-9+/=]+(")'), r"\1[REDACTED]\2"),
    (re.compile(r"\b(password|passwd|key)=\S+", re.IGNORECASE), r"\1=[REDACTED]"),
]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def redact(text: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactionFilter(logging.Filter):
    """Filter that redacts secret-like patterns from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


def configure_logging(level: str | int = "WARNING") -> logging.Logger:
    """Send ``vaultpad.*`` records to stderr at *level*, redacted."""
    logger = logging.getLogger("vaultpad")
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in logger.handlers[:]:
        if getattr(handler, "_vaultpad", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._vaultpad = True  # type: ignore[attr-defined]
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(SecretRedactionFilter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
