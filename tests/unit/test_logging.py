from __future__ import annotations

import json
import logging

from schemastats.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_RECORDS = 10


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.records = EXPECTED_RECORDS
    record.schema_id = "abc123"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["records"] == EXPECTED_RECORDS
    assert payload["schema_id"] == "abc123"
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"fields": ["age", "score"]}

    payload = json.loads(_json_formatter(record))

    assert payload["fields"] == ["age", "score"]


def test_json_formatter_stringifies_unserializable_values() -> None:
    record = _record()
    record.path = object()

    payload = json.loads(_json_formatter(record))

    assert isinstance(payload["path"], str)


def test_json_formatter_adds_utc_timestamp() -> None:
    payload = json.loads(_json_formatter(_record()))

    assert payload["time"].endswith("+00:00")


def test_configure_logging_caps_library_loggers() -> None:
    try:
        configure_logging(level="info", json_logs=True)

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("psycopg.pool").level == logging.WARNING
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

        configure_logging(level="debug")
        assert logging.getLogger("psycopg.pool").level == logging.DEBUG
    finally:
        configure_logging(level="WARNING")


def test_configure_logging_without_force_keeps_existing_handlers() -> None:
    configure_logging(level="WARNING")
    handler = logging.getLogger().handlers[0]

    configure_logging(level="DEBUG", force=False)

    assert logging.getLogger().handlers[0] is handler
    assert logging.getLogger().level == logging.WARNING
