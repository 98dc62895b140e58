"""Root logging setup: plain or JSON output with household-secret redaction."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

REDACTED = "[redacted]"

# Values carried in log records via ``extra=``; JSON output lifts them to top-level keys.
CONTEXT_FIELDS: Tuple[str, ...] = ("request_id", "dish_id", "week_start")

_TOKEN_PATTERNS = (
    re.compile(r"(Bearer\s+)([A-Za-z0-9\-._~+/=]+)", re.IGNORECASE),
    re.compile(r"(api_token=)([^&\s]+)", re.IGNORECASE),
    re.compile(r"(X-API-Key[=:]\s*)([^&\s]+)", re.IGNORECASE),
)


def redact(text: str, secrets: Iterable[str] = ()) -> str:
    """Mask token-looking values and any literal occurrence of ``secrets``."""

    for pattern in _TOKEN_PATTERNS:
        text = pattern.sub(lambda match: match.group(1) + REDACTED, text)
    for secret in secrets:
        text = text.replace(secret, REDACTED)
    return text


class SensitiveDataFilter(logging.Filter):
    """Rewrites records so the API token never reaches a handler."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self._secrets: List[str] = sorted(
            {secret.strip() for secret in secrets if secret and secret.strip()},
            key=len,
            reverse=True,
        )

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        if not self._secrets:
            return True

        rendered = record.getMessage()
        cleaned = redact(rendered, self._secrets)
        if cleaned != rendered:
            record.msg, record.args = cleaned, ()

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if isinstance(value, str):
                setattr(record, field, redact(value, self._secrets))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with request and dish context when present."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def _build_formatter(fmt: str) -> logging.Formatter:
    if (fmt or "plain").lower() == "json":
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Replace the root handlers with one stream handler and route uvicorn through it."""

    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO

    redactor = SensitiveDataFilter(secrets)
    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    handler.addFilter(redactor)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = []
        server_logger.propagate = True
        server_logger.setLevel(level)
        server_logger.addFilter(redactor)


__all__ = [
    "REDACTED",
    "CONTEXT_FIELDS",
    "SensitiveDataFilter",
    "JsonFormatter",
    "configure_logging",
    "redact",
]
