"""Structured logging utilities for the relay layer.

All components log through child loggers of the shared ``providers`` logger,
which writes one JSON object per line to stderr. Call sites emit events with
``log_event`` (free-form fields) or ``normalized_log_event`` which guarantees
the canonical keys used by dashboards: ``structured``, ``phase``,
``attempt``, ``error_code``, ``emitted`` and ``tokens``.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Mapping, Optional

from .log_support import JsonFormatter, LogContext


ROOT_LOGGER_NAME = "providers"
_PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_BASE_LOGGER_ATTR = "_providers_logger_initialized"
_CONSOLE_HANDLER_ATTR = "_providers_console_handler"
_FILE_HANDLER_ATTR = "_providers_file_handler"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def _parse_level(value: str | None, default: int = logging.INFO) -> int:
    """Parse a level name case-insensitively, falling back to ``default``."""
    if not value:
        return default
    return _LEVELS.get(value.strip().upper(), default)


def _formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(_PLAIN_FORMAT)


def _ensure_base_logger(json_mode: bool, level: int) -> logging.Logger:
    """Initialize (once) and return the shared ``providers`` logger."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    desired = _parse_level(os.getenv("PROVIDERS_LOG_LEVEL"), default=level)
    if getattr(logger, _BASE_LOGGER_ATTR, False):
        if logger.level != desired:
            logger.setLevel(desired)
        for handler in list(logger.handlers):
            if not getattr(handler, _CONSOLE_HANDLER_ATTR, False):
                continue
            stream = getattr(handler, "stream", None)
            # pytest's capsys swaps stderr between tests; rebind closed streams
            if stream is None or getattr(stream, "closed", False):
                logger.removeHandler(handler)
                with contextlib.suppress(Exception):
                    handler.close()
                logger.addHandler(_console_handler(json_mode, desired))
            else:
                handler.setLevel(desired)
        return logger

    logger.setLevel(desired)
    logger.handlers[:] = [_console_handler(json_mode, desired)]
    logger.propagate = False
    setattr(logger, _BASE_LOGGER_ATTR, True)
    return logger


def _console_handler(json_mode: bool, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter(json_mode))
    setattr(handler, _CONSOLE_HANDLER_ATTR, True)
    return handler


def get_logger(name: str = ROOT_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return ``name`` as a child of the shared logger (``providers.<component>``).

    Child loggers carry no handlers of their own; records propagate to the
    shared logger so configuration happens in one place.
    """
    base_logger = _ensure_base_logger(json_mode=json_mode, level=level)
    if name == ROOT_LOGGER_NAME:
        return base_logger
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    return logger


def configure_logger(
    *,
    level: int | str | None = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Reconfigure the shared logger at runtime.

    Parameters
    ----------
    level: int | str | None
        New level (number or name). ``None`` keeps the current level.
    file_path: Optional[str]
        Attach a rotating file handler (10MB x 5) writing to this path. When
        ``None`` any handler previously attached by this function is removed.
    json_mode: bool
        JSON formatter (default) or plain text for the file handler.
    """
    logger = _ensure_base_logger(json_mode=json_mode, level=logging.INFO)
    if level is not None:
        logger.setLevel(_parse_level(level, logger.level) if isinstance(level, str) else level)
        for handler in logger.handlers:
            handler.setLevel(logger.level)

    managed = [h for h in logger.handlers if getattr(h, _FILE_HANDLER_ATTR, False)]
    abs_path = os.path.abspath(os.path.expanduser(file_path)) if file_path else None
    for handler in managed:
        if abs_path is not None and getattr(handler, "baseFilename", None) == abs_path:
            handler.setFormatter(_formatter(json_mode))
            handler.setLevel(logger.level)
            return logger
        logger.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()
    if abs_path is None:
        return logger

    os.makedirs(os.path.dirname(abs_path), exist_ok=True)
    fh = RotatingFileHandler(abs_path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8")
    setattr(fh, _FILE_HANDLER_ATTR, True)
    fh.setLevel(logger.level)
    fh.setFormatter(_formatter(json_mode))
    logger.addHandler(fh)
    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Emit one structured event as a JSON message.

    ``None`` values are dropped unless ``keep_none`` is set. Context fields
    (provider, model, request id) are merged before the explicit fields.
    """
    payload: Dict[str, Any] = {"event": event}
    if ctx:
        payload |= ctx.to_dict()
    if keep_none:
        payload.update(fields)
    else:
        payload.update({k: v for k, v in fields.items() if v is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


REQUIRED_NORMALIZED_KEYS = (
    "structured",
    "phase",
    "attempt",
    "error_code",
    "emitted",
    "tokens",
)


def _coerce_tokens(tokens: Any) -> Any:
    if tokens is None:
        return None
    if isinstance(tokens, Mapping):
        return dict(tokens.items())
    return {"value": repr(tokens)}


def normalized_log_event(  # noqa: PLR0913
    logger: logging.Logger,
    event: str,
    ctx: LogContext | None = None,
    *,
    phase: str,
    attempt: int | None = None,
    error_code: str | None = None,
    emitted: bool | None = None,
    tokens: Any = None,
    level: int = logging.INFO,
    **extra_fields: Any,
) -> None:
    """Emit an event that always carries the normalized key set.

    ``error_code`` is omitted when ``None`` (no error); the other required
    keys are kept even when unknown. Extra fields never clobber them.
    """
    fields: Dict[str, Any] = {
        "structured": True,
        "phase": phase,
        "attempt": attempt,
        "error_code": error_code,
        "emitted": emitted,
        "tokens": _coerce_tokens(tokens),
    }
    if error_code is None:
        fields.pop("error_code")
    for key, value in extra_fields.items():
        if value is None or fields.get(key) is not None:
            continue
        fields[key] = value
    log_event(logger, event, ctx, level=level, keep_none=True, **fields)


__all__ = [
    "LogContext",
    "ROOT_LOGGER_NAME",
    "get_logger",
    "configure_logger",
    "log_event",
    "normalized_log_event",
    "REQUIRED_NORMALIZED_KEYS",
]
