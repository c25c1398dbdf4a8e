"""JSON formatter for the shared ``providers`` logger.

Messages produced by ``log_event`` are already JSON objects; their keys are
hoisted to the top level so the emitted line is a single flat object instead
of a double-encoded string.
"""
from __future__ import annotations

import contextlib
import json
import logging
from datetime import datetime, timezone

ISO = "%Y-%m-%dT%H:%M:%S.%fZ"

_RECORD_INTERNALS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "name",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
    }
)


class JsonFormatter(logging.Formatter):
    """Serialize a record as ``{ts, level, logger, ...event fields}``."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - trivial formatting
        out = {
            "ts": datetime.now(timezone.utc).strftime(ISO),
            "level": record.levelname,
            "logger": record.name,
        }
        text = record.getMessage()
        hoisted = False
        with contextlib.suppress(ValueError):
            parsed = json.loads(text)
            if isinstance(parsed, dict):
                out.update(parsed)
                hoisted = True
        if not hoisted:
            out["msg"] = text
        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _RECORD_INTERNALS or key in out:
                continue
            out[key] = value
        return json.dumps(out, ensure_ascii=False, default=str)


__all__ = ["JsonFormatter", "ISO"]
