"""Logging setup emitting one JSON object per record, structured extras included."""
from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

SENSITIVE_KEYS = {"authorization", "auth_token", "token", "secret"}

_RESERVED = set(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _mask_value(value: str) -> str:
    if len(value) <= 4:
        return "***"
    return f"{value[:2]}***{value[-2:]}"


class JSONLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _RESERVED or key.startswith("_") or key in payload:
                continue
            if key.lower() in SENSITIVE_KEYS and isinstance(value, str):
                value = _mask_value(value)
            payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: int | str = logging.INFO, log_file: str | Path | None = None) -> None:
    """Replace root handlers with a JSON console handler and an optional rotating file."""

    formatter = JSONLogFormatter()
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        destination = Path(log_file).expanduser()
        try:
            destination.resolve().parent.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            logging.getLogger(__name__).warning(
                "log_directory_unavailable", extra={"path": str(destination), "error": str(error)}
            )
        else:
            file_handler = logging.handlers.RotatingFileHandler(
                destination,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

    logging.getLogger(__name__).info(
        "logging_configured",
        extra={"log_level": level, "log_file": str(log_file) if log_file else None},
    )


__all__ = ["JSONLogFormatter", "setup_logging"]
