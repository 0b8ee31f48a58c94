"""Logging helpers for allocopt runs."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

ROOT_LOGGER_NAME = "allocopt"
CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class SensitiveDataFilter(logging.Filter):
    """Mask credentials that may leak into URLs or headers."""

    _PATTERNS: Iterable[tuple[re.Pattern[str], str]] = (
        (re.compile(r"(authorization=)([^\s]+)", re.I), r"\1***"),
        (re.compile(r"(api[_-]?key=)([^&\s]+)", re.I), r"\1***"),
        (re.compile(r"(access[_-]?token=)([^&\s]+)", re.I), r"\1***"),
        (re.compile(r"Bearer\s+[A-Za-z0-9._-]+"), "Bearer ***"),
        # hosted gateways carry the API key in the path: /api/<key>/subgraphs/...
        (re.compile(r"(/api/)([0-9a-f]{32})(/)", re.I), r"\1***\3"),
    )

    def __init__(self) -> None:
        super().__init__(name="SensitiveDataFilter")

    @staticmethod
    def _sanitize_value(value: object) -> object:
        if isinstance(value, str):
            sanitized = value
            for pattern, repl in SensitiveDataFilter._PATTERNS:
                sanitized = pattern.sub(repl, sanitized)
            return sanitized
        if isinstance(value, (list, tuple)):
            return type(value)(SensitiveDataFilter._sanitize_value(v) for v in value)
        if isinstance(value, dict):
            return {k: SensitiveDataFilter._sanitize_value(v) for k, v in value.items()}
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self._sanitize_value(record.msg)
        if record.args:
            record.args = self._sanitize_value(record.args)
        return True


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        data = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        if record.__dict__.get("extra"):
            data["extra"] = record.__dict__["extra"]
        return json.dumps(data, ensure_ascii=False)


def resolve_level(level: str | int | None) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level or "INFO").upper())
    if isinstance(resolved, str):  # unknown name returns string
        return logging.INFO
    return resolved


def configure_logging(
    *,
    level: str | int | None = None,
    log_file_path: Optional[Path] = None,
    stream=None,
) -> logging.Logger:
    """Attach console and optional rotating JSON file handlers to the package logger."""

    resolved_level = resolve_level(level)
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(resolved_level)

    console = _find_handler(logger, logging.StreamHandler, exclude=RotatingFileHandler)
    if console is None:
        console = logging.StreamHandler(stream or sys.stderr)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)
    console.setLevel(resolved_level)
    _ensure_filter(console)

    if log_file_path is not None:
        handler = get_rotating_log_handler(logger, log_file_path)
        if handler is None:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                log_file_path,
                maxBytes=20 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            logger.addHandler(handler)
        handler.setLevel(resolved_level)
        _ensure_filter(handler)
        handler.setFormatter(JsonFormatter())
    return logger


def get_rotating_log_handler(logger: logging.Logger, log_file_path: Path) -> Optional[RotatingFileHandler]:
    """Return the rotating handler already writing to ``log_file_path``, if any."""
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            base_filename = getattr(handler, "baseFilename", "")
            if Path(base_filename).resolve() == log_file_path.resolve():
                return handler
    return None


def _find_handler(logger: logging.Logger, kind: type, *, exclude: type) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if isinstance(handler, kind) and not isinstance(handler, exclude):
            return handler
    return None


def _ensure_filter(handler: logging.Handler) -> None:
    if not any(isinstance(f, SensitiveDataFilter) for f in handler.filters):
        handler.addFilter(SensitiveDataFilter())
