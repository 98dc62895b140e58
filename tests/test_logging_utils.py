"""Tests for logging utilities and sensitive data redaction."""

from __future__ import annotations

import json
import logging

import pytest

from mealcal.logging_utils import configure_logging


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="mealcal.test.redaction",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.parametrize("fmt", ["plain", "json"])
def test_sensitive_data_filter_redacts_tokens(fmt):
    secret = "household-secret"
    configure_logging("INFO", fmt, [secret])

    handler = logging.getLogger().handlers[0]
    record = _record("Authorization header Bearer %s", secret)

    for filter_ in handler.filters:
        filter_.filter(record)

    formatted = handler.format(record)
    assert secret not in formatted
    assert "[redacted]" in formatted


def test_query_string_token_is_masked():
    configure_logging("INFO", "plain", ["household-secret"])

    handler = logging.getLogger().handlers[0]
    record = _record("POST /calendar/initialise-weeks?api_token=household-secret")
    for filter_ in handler.filters:
        filter_.filter(record)

    assert "household-secret" not in handler.format(record)


def test_json_formatter_includes_request_and_dish_ids():
    configure_logging("DEBUG", "json", [])

    handler = logging.getLogger().handlers[0]
    record = _record("last_eaten recorded", request_id="abc123", dish_id=7)

    payload = json.loads(handler.format(record))
    assert payload["message"] == "last_eaten recorded"
    assert payload["request_id"] == "abc123"
    assert payload["dish_id"] == 7
    assert payload["level"] == "INFO"
