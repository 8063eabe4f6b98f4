from __future__ import annotations

import logging

import pytest

from src.ops.events import (
    REDACTED,
    RequestContextFilter,
    configure_logging,
    get_correlation_id,
    new_correlation_id,
    redact_text,
    reset_correlation_id,
    set_correlation_id,
)


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord("src.test", logging.INFO, __file__, 1, msg, args, None)


def test_redact_text_masks_emails() -> None:
    assert redact_text("signup from New@Example.com ok") == f"signup from {REDACTED} ok"
    assert redact_text("no address here") == "no address here"


def test_correlation_id_roundtrip() -> None:
    assert get_correlation_id() is None
    token = set_correlation_id("req-1")
    assert get_correlation_id() == "req-1"
    reset_correlation_id(token)
    assert get_correlation_id() is None


def test_new_correlation_id_is_hex() -> None:
    value = new_correlation_id()
    assert len(value) == 32
    int(value, 16)


def test_filter_stamps_correlation_id() -> None:
    token = set_correlation_id("req-42")
    try:
        record = _record("hello")
        assert RequestContextFilter().filter(record) is True
        assert record.correlation_id == "req-42"
    finally:
        reset_correlation_id(token)


def test_filter_defaults_correlation_id_outside_requests() -> None:
    record = _record("hello")
    RequestContextFilter().filter(record)
    assert record.correlation_id == "-"


def test_filter_redacts_formatted_arguments() -> None:
    record = _record("Magic for %s at %s", "user@example.com", "1.2.3.4")
    RequestContextFilter().filter(record)
    assert record.getMessage() == f"Magic for {REDACTED} at 1.2.3.4"


def test_configure_logging_installs_single_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    configure_logging("debug")
    configure_logging("debug")
    installed = [h for h in root.handlers if any(isinstance(f, RequestContextFilter) for f in h.filters)]
    assert len(installed) == 1
    assert root.level == logging.DEBUG
