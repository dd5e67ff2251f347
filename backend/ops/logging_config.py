"""
Structured logging configuration.

Ledger code logs through the standard library with structured context in
``extra`` (entry_number, invoice_number, amount, ...). Two renderings:

- Production: one JSON object per line on stdout, for log aggregation
- Development: a readable line with the context appended as key=value

Environment variables:
- LOG_FORMAT: "json" or "console" (default: json unless DEBUG)
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO, DEBUG when DEBUG)
- LOG_SQL: "1" to log SQL queries (django.db.backends at DEBUG)
"""
import datetime
import json
import logging
import os


# Loggers of the project's own packages; each gets the configured level.
APP_LOGGERS = (
    "accounts",
    "accounting",
    "events",
    "invoicing",
    "projects",
    "projections",
    "ops",
)

# Context keys that identify a ledger document. The JSON formatter lifts
# them into a "ledger" object so they can be indexed directly.
LEDGER_KEYS = (
    "entry_number",
    "invoice_number",
    "payment_number",
    "project_code",
    "account_code",
)

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def extra_fields(record: logging.LogRecord) -> dict:
    """Return the attributes a caller attached to a record through ``extra``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


def _handler(formatter: str) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "stream": "ext://sys.stdout",
    }


def get_logging_config(debug: bool = False) -> dict:
    """
    Build the Django LOGGING dict.

    Args:
        debug: Whether running in debug mode

    Returns:
        Django LOGGING dict
    """
    log_level = os.environ.get("LOG_LEVEL", "DEBUG" if debug else "INFO").upper()
    log_format = os.environ.get("LOG_FORMAT", "console" if debug else "json")
    log_sql = os.environ.get("LOG_SQL", "0") == "1"

    formatter = "json" if log_format == "json" else "console"

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "ops.logging_config.JsonFormatter"},
            "console": {"()": "ops.logging_config.KeyValueFormatter"},
        },
        "handlers": {
            "console": _handler(formatter),
            "null": {"class": "logging.NullHandler"},
        },
        "root": {
            "handlers": ["console"],
            "level": log_level,
        },
        "loggers": {
            "django": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": False,
            },
            # 4xx responses are expected ledger outcomes (409 on a second
            # approval, 422 on a missing posting account); only log 5xx.
            "django.request": {
                "handlers": ["console"],
                "level": "ERROR",
                "propagate": False,
            },
            "django.db.backends": {
                "handlers": ["console"] if log_sql else ["null"],
                "level": "DEBUG" if log_sql else "INFO",
                "propagate": False,
            },
        },
    }

    for name in APP_LOGGERS:
        config["loggers"][name] = {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        }

    return config


class KeyValueFormatter(logging.Formatter):
    """
    Console formatter for development.

        [2026-03-10 12:00:01] INFO accounting.journal Journal entry approved entry_number=JE-2026-00001
    """

    def __init__(self):
        super().__init__(
            fmt="[{asctime}] {levelname} {name} {message}",
            datefmt="%Y-%m-%d %H:%M:%S",
            style="{",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = extra_fields(record)
        if context:
            pairs = " ".join(f"{key}={value}" for key, value in context.items())
            head, sep, tail = line.partition("\n")
            line = f"{head} {pairs}{sep}{tail}"
        return line


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter for structured logging.

    Outputs JSON lines with consistent fields:
    - timestamp: ISO 8601 time the record was created (UTC)
    - level, logger, message
    - location: file, line and function
    - ledger: document identifiers found in the context
    - extra: the remaining context
    - exception: formatted traceback, if any
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)

        log_entry = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        context = extra_fields(record)
        ledger = {key: context.pop(key) for key in LEDGER_KEYS if key in context}
        if ledger:
            log_entry["ledger"] = ledger
        if context:
            log_entry["extra"] = context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)
