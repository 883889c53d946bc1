"""Tests for structured logging."""

import json
import logging

from noted_store.logging_utils import (
    StorageLoggerAdapter,
    StructuredJsonFormatter,
    configure_structured_logging,
    get_storage_logger,
)


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "noted_store.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
    )
    record.__dict__.update(extra)
    return record


class TestStructuredJsonFormatter:
    """Tests for StructuredJsonFormatter."""

    def test_single_line_json(self):
        line = StructuredJsonFormatter().format(make_record())

        data = json.loads(line)
        assert "\n" not in line
        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["logger"] == "noted_store.test"

    def test_extra_fields_included(self):
        data = json.loads(
            StructuredJsonFormatter().format(make_record(user_id="a@x.io", status=200))
        )

        assert data["user_id"] == "a@x.io"
        assert data["status"] == 200

    def test_unserializable_extra_is_stringified(self):
        data = json.loads(StructuredJsonFormatter().format(make_record(thing=object())))

        assert data["thing"].startswith("<object")


class TestLoggerHelpers:
    """Tests for logger construction helpers."""

    def test_storage_logger_name(self):
        assert get_storage_logger("sharded").name == "noted_store.sharded"

    def test_configure_replaces_handlers(self):
        logger = configure_structured_logging(logger_name="noted_store.test_configure")
        configure_structured_logging(
            level=logging.DEBUG, logger_name="noted_store.test_configure", json_output=False
        )

        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert not isinstance(logger.handlers[0].formatter, StructuredJsonFormatter)

    def test_adapter_adds_context(self):
        adapter = StorageLoggerAdapter(logging.getLogger("noted_store.x"), {"user_id": "u"})

        _, kwargs = adapter.process("msg", {"extra": {"size": 3}})

        assert kwargs["extra"] == {"size": 3, "user_id": "u"}
