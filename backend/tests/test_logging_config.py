# tests/test_logging_config.py
"""
Tests for the structured logging setup.

No database: formatters and filters work on bare LogRecords.
"""

import json
import logging

from accounting.lifecycle import EntryStatus
from ops.logging_config import (
    APP_LOGGERS,
    JsonFormatter,
    WorkflowContextFilter,
    get_logging_config,
)


def _record(msg="Journal submit accepted", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="accounting.commands",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_workflow_context_is_top_level(self):
        record = _record(
            operation="submit",
            entry_id=7,
            from_state=EntryStatus.DRAFT,
            to_state=EntryStatus.PENDING,
            version=3,
            company_id=1,
            actor_id=2,
        )
        line = json.loads(JsonFormatter().format(record))

        assert line["level"] == "INFO"
        assert line["logger"] == "accounting.commands"
        assert line["message"] == "Journal submit accepted"
        assert line["operation"] == "submit"
        assert line["entry_id"] == 7
        assert line["from_state"] == "DRAFT"
        assert line["to_state"] == "PENDING"
        assert line["version"] == 3
        assert "extra" not in line

    def test_refusal_carries_error_code(self):
        record = _record(
            "Journal approve rejected: forbidden",
            level=logging.WARNING,
            operation="approve",
            error_code="FORBIDDEN",
            entry_id=None,
            role="USER",
        )
        line = json.loads(JsonFormatter().format(record))

        assert line["level"] == "WARNING"
        assert line["error_code"] == "FORBIDDEN"
        assert line["role"] == "USER"
        assert "entry_id" not in line

    def test_other_extras_are_nested_and_stringified(self):
        marker = object()
        record = _record(idempotency_key="journal_entry.created:abc:v1", obj=marker)
        line = json.loads(JsonFormatter().format(record))

        assert line["extra"]["idempotency_key"] == "journal_entry.created:abc:v1"
        assert line["extra"]["obj"] == str(marker)
        assert "operation" not in line

    def test_timestamp_is_utc(self):
        line = json.loads(JsonFormatter().format(_record()))
        assert line["timestamp"].endswith("Z")


class TestWorkflowContextFilter:
    def test_renders_key_values(self):
        record = _record(operation="reject", entry_id=4, version=2)
        assert WorkflowContextFilter().filter(record) is True
        assert record.workflow == " operation=reject entry_id=4 version=2"

    def test_empty_without_context(self):
        record = _record()
        WorkflowContextFilter().filter(record)
        assert record.workflow == ""

    def test_console_format_includes_context(self):
        config = get_logging_config(debug=True)
        fmt = config["formatters"]["console"]
        formatter = logging.Formatter(fmt["format"], style=fmt["style"])
        record = _record(operation="confirm", to_state="CONFIRMED")
        WorkflowContextFilter().filter(record)

        assert formatter.format(record).endswith(
            "Journal confirm accepted operation=confirm to_state=CONFIRMED"
        )


class TestGetLoggingConfig:
    def test_debug_defaults_to_console(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        config = get_logging_config(debug=True)

        assert config["handlers"]["console"]["formatter"] == "console"
        assert config["loggers"]["accounting"]["level"] == "DEBUG"
        assert config["loggers"]["django.db.backends"]["handlers"] == ["console"]

    def test_production_defaults_to_json(self, monkeypatch):
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "json"
        assert config["loggers"]["django.request"]["level"] == "ERROR"
        assert config["loggers"]["django.db.backends"]["handlers"] == ["null"]

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "console")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        config = get_logging_config(debug=False)

        assert config["handlers"]["console"]["formatter"] == "console"
        for name in APP_LOGGERS:
            assert config["loggers"][name]["level"] == "WARNING"

    def test_unknown_format_falls_back_to_json(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")
        config = get_logging_config(debug=True)
        assert config["handlers"]["console"]["formatter"] == "json"

    def test_every_handler_applies_workflow_context(self):
        config = get_logging_config()
        assert config["handlers"]["console"]["filters"] == ["workflow_context"]
        assert config["filters"]["workflow_context"]["()"] == "ops.logging_config.WorkflowContextFilter"
