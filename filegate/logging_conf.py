"""JSON-line logging for the file gate service.

Every record becomes one JSON object on stdout. Structured fields passed via
`logger.info("event.name", extra={...})` are merged into the object.
setup_logging() is idempotent so reloads and test sessions don't stack handlers.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import IO, Any

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries; anything else on the record came from `extra`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """Render a record as `{"ts", "level", "logger", "message", **extra}`."""

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
        }

        msg = record.msg
        if isinstance(msg, dict):
            payload.update(msg)
        else:
            payload["message"] = record.getMessage()

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key in payload:
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)



_HANDLER_NAME = "filegate.json"
_NAMESPACE = "filegate"
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _json_handler(level: int, stream: IO[str] | None) -> Handler:
    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL, *, stream: IO[str] | None = None) -> None:
    """Attach the JSON handler to the root logger once and hand uvicorn's output to it.

    Other root handlers (pytest's capture, for one) are left in place.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return

    root.setLevel(level)
    root.addHandler(_json_handler(level, stream))

    for name in _SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.setLevel(level)
        server_logger.propagate = True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the `filegate` namespace, e.g. get_logger("service.storage")."""
    return logging.getLogger(f"{_NAMESPACE}.{name}" if name else _NAMESPACE)
