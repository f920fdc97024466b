"""
Structured logging configuration.

Journal commands log one line per accepted or refused operation and pass
the workflow context through ``extra=`` (operation, error_code, entry_id,
from_state, to_state, version, company_id, actor_id, role). Both output
formats surface that context:

- json: the workflow keys are top-level fields of each JSON line, any
  other extras are nested under "extra".
- console: the workflow keys are appended to the message as key=value.

Environment variables:
- LOG_FORMAT: "json" or "console" (default: console when DEBUG, else json)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: DEBUG when DEBUG, else INFO)
"""
import json
import logging
import os
from datetime import datetime, timezone


APP_LOGGERS = ("accounts", "accounting", "events", "ops")

# Context attached by accounting.commands and accounts.commands.
WORKFLOW_FIELDS = (
    "operation",
    "error_code",
    "entry_id",
    "from_state",
    "to_state",
    "version",
    "company_id",
    "actor_id",
    "role",
)

# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "workflow"}


def _record_extras(record: logging.LogRecord) -> dict:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS
    }


def _jsonable(value):
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def get_logging_config(debug: bool = False) -> dict:
    """
    Build Django's LOGGING dict.

    The root logger and every app logger write to a single console handler;
    SQL logging is only shown in debug.
    """
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO")
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")
    if log_format not in ("json", "console"):
        log_format = "json"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "workflow_context": {
                "()": "ops.logging_config.WorkflowContextFilter",
            },
        },
        "formatters": {
            "json": {
                "()": "ops.logging_config.JsonFormatter",
            },
            "console": {
                "format": "[{asctime}] {levelname} {name} {message}{workflow}",
                "style": "{",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": log_format,
                "filters": ["workflow_context"],
                "stream": "ext://sys.stdout",
            },
            "null": {
                "class": "logging.NullHandler",
            },
        },
    }

    loggers = {
        "": {"handlers": ["console"], "level": log_level},
        "django": {"handlers": ["console"], "level": log_level, "propagate": False},
        "django.request": {
            "handlers": ["console"],
            "level": log_level if debug else "ERROR",
            "propagate": False,
        },
        "django.db.backends": {
            "handlers": ["console"] if debug else ["null"],
            "level": "DEBUG" if debug else "INFO",
            "propagate": False,
        },
    }
    for name in APP_LOGGERS:
        loggers[name] = {"handlers": ["console"], "level": log_level, "propagate": False}
    config["loggers"] = loggers

    return config


class WorkflowContextFilter(logging.Filter):
    """
    Render the workflow context of a record as " key=value ..." into
    ``record.workflow`` (empty when the record carries none), so the
    console format can reference it unconditionally.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        pairs = [
            f"{key}={getattr(record, key)}"
            for key in WORKFLOW_FIELDS
            if getattr(record, key, None) is not None
        ]
        record.workflow = (" " + " ".join(pairs)) if pairs else ""
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp", "level", "logger", "message", <workflow fields>,
     "location", "exception"?, "extra"?}

    Workflow fields that are None are left out.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _record_extras(record)
        for key in WORKFLOW_FIELDS:
            value = extras.pop(key, None)
            if value is not None:
                log_entry[key] = _jsonable(value)

        log_entry["location"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if extras:
            log_entry["extra"] = {key: _jsonable(value) for key, value in extras.items()}

        return json.dumps(log_entry, default=str)
