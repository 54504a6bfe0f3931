from __future__ import annotations

import logging

from app.services.logging import short_id, utc_formatter


def _record_at(created: float) -> logging.LogRecord:
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello", None, None)
    record.created = created
    record.msecs = 0
    return record


def test_timestamps_render_in_utc() -> None:
    formatter = utc_formatter()

    line = formatter.format(_record_at(0))

    assert line == "1970-01-01T00:00:00Z | INFO | app.test | hello"


def test_short_id_truncates_long_identifiers() -> None:
    assert short_id("abc") == "abc"
    assert short_id("x" * 30, length=10) == "x" * 10 + "..."
