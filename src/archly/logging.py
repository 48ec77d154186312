"""Centralized logging utilities for archly.

This module provides:
- Logging configuration from AclConfig
- Safe preview utility for record values
- Structured (JSON or plain) formatting with role/resource/action context
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import AclConfig, LogLevel

# Extras carried by AclLoggerAdapter and rendered by AclFormatter
CONTEXT_FIELDS = ("role", "resource", "action")

_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a length-bounded, single-line preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    # Normalize whitespace
    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


class AclFormatter(logging.Formatter):
    """Formatter that renders role/resource/action context.

    Outputs JSON (one object per line) or plain text with the context
    appended as ``key=value`` pairs.
    """

    def __init__(self, json_format: bool = True, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {}
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                context[key] = safe_preview(value)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if self.json_format:
            log_data.update(context)
            for key, value in record.__dict__.items():
                if key not in _RESERVED_ATTRS and key not in CONTEXT_FIELDS and key not in log_data:
                    log_data[key] = safe_preview(value)
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            log_data["level"],
            log_data["logger"],
        ]
        parts.extend(f"{key}={value}" for key, value in context.items())
        parts.append(f": {log_data['message']}")
        line = " ".join(parts)
        if "exception" in log_data:
            line = f"{line}\n{log_data['exception']}"
        return line


class AclLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that attaches role/resource/action to log records.

    Usage:
        logger = get_acl_logger(__name__)
        logger.debug("Evaluating", role="editor", resource="page", action="READ")
    """

    def __init__(self, logger: logging.Logger, **context: Any):
        super().__init__(logger, {})
        self.context = {key: context.get(key) for key in CONTEXT_FIELDS}

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        for key in CONTEXT_FIELDS:
            value = kwargs.pop(key, self.context[key])
            if value is not None:
                extra[key] = value
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    config: Optional[AclConfig] = None,
    json_format: Optional[bool] = None,
    logger_name: str = "archly",
) -> logging.Logger:
    """Configure the archly logger.

    Sets the level from AclConfig and installs a single stream handler with
    :class:`AclFormatter`. Existing handlers on that logger are replaced.

    Args:
        config: AclConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
        logger_name: Logger to configure (default: the package logger)

    Returns:
        The configured logger.
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    if json_format is None:
        json_format = config.log_json

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)
    handler.setFormatter(AclFormatter(json_format=json_format))
    logger.addHandler(handler)

    return logger


def get_acl_logger(name: str, **context: Any) -> AclLoggerAdapter:
    """Get a logger adapter carrying role/resource/action context.

    Args:
        name: Logger name (typically __name__)
        **context: Default ``role``, ``resource`` or ``action`` for all records
    """
    return AclLoggerAdapter(logging.getLogger(name), **context)


__all__ = [
    "AclFormatter",
    "AclLoggerAdapter",
    "get_acl_logger",
    "safe_preview",
    "setup_logging",
]
