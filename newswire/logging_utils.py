"""
Logging for the newswire pipeline.

Every module logs through a child of the ``newswire`` logger with
``log_event``, attaching structured fields to the record. Two fields are
conventional across the package:

- ``event``: a stable snake_case name (``fetch_failed``, ``crawl_complete``)
- ``source_id``: the news source the record concerns, when there is one

Console output goes through Rich with those two fields shown inline; the
optional file handler writes one JSON object per record so a crawl log can be
filtered by ``event`` or ``source_id``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from .config import LoggingConfig


LOGGER_NAME = "newswire"

# Extraction libraries that log every page they touch.
NOISY_LOGGERS = ("trafilatura", "readability", "readability.readability", "httpx", "httpcore")

# Fields promoted to the front of JSON records and shown on the console.
KEY_FIELDS = ("event", "source_id")

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def setup_logging(cfg: LoggingConfig, output_dir: Path | None = None) -> logging.Logger:
    """Configure the package logger; returns it.

    Handlers from a previous call are replaced. The file handler is only
    installed when ``cfg.file`` is set and an output directory is given.
    """
    level = _parse_level(cfg.level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []
    logger.propagate = False
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    handlers: list[logging.Handler] = []
    if cfg.console:
        console = RichHandler(rich_tracebacks=True, show_time=False, show_level=True, markup=False)
        console.setFormatter(ConsoleFormatter())
        handlers.append(console)
    if cfg.file and output_dir is not None:
        output_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(output_dir / cfg.filename, encoding="utf-8")
        file_handler.setFormatter(JsonlFormatter() if cfg.format == "jsonl" else PlainFormatter())
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


def log_event(logger: logging.Logger | None, message: str, level: int = logging.INFO, **fields: Any) -> None:
    """Log ``message`` with ``fields`` attached as record attributes.

    Fields whose value is None are left off the record.
    """
    if logger is None:
        return
    logger.log(level, message, extra={key: value for key, value in fields.items() if value is not None})


def truncate_text(text: str, max_chars: int = 2000) -> str:
    """Shorten ``text`` for a log field, noting how much was cut."""
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}...(+{len(text) - max_chars} chars)"


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Structured fields of ``record``, key fields first."""
    extras = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS}
    ordered = {key: extras.pop(key) for key in KEY_FIELDS if key in extras}
    ordered.update(extras)
    return ordered


class JsonlFormatter(logging.Formatter):
    """One JSON object per record, timestamped from the record itself."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Single-line text records with the key fields as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        tags = " ".join(f"{key}={fields[key]}" for key in KEY_FIELDS if key in fields)
        return f"{line} [{tags}]" if tags else line


class ConsoleFormatter(logging.Formatter):
    """``[source_id] message`` for the Rich console."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        source_id = getattr(record, "source_id", None)
        return f"[{source_id}] {message}" if source_id else message


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO
