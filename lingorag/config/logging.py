"""Logging setup for lingorag.

Everything logs under the ``lingorag`` namespace. Output goes to stderr so
CLI results on stdout stay clean. Persistence failures are logged rather
than raised, so the JSON mode exists to keep them searchable.
"""

import json
import logging
import sys
from typing import Any

ROOT_LOGGER = "lingorag"

# Per-request INFO lines from the HTTP stack drown out our own logs
NOISY_LOGGERS = ("httpx", "httpcore")

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s | %(message)s"

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONExceptionFormatter(logging.Formatter):
    """One JSON object per record, with ``extra=`` fields and exception info."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.filename}:{record.funcName}:{record.lineno}",
        }

        fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if fields:
            entry["fields"] = fields

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value) if exc_value is not None else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_format: bool = False) -> logging.Logger:
    """Install a single stderr handler on the package logger.

    Safe to call more than once; the API lifespan and every CLI command do.
    Unknown level names fall back to INFO.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        JSONExceptionFormatter() if json_format else logging.Formatter(TEXT_FORMAT, "%H:%M:%S")
    )
    root.handlers[:] = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
