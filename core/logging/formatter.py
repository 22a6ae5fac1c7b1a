from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict

from .context import current_tags

_LEVEL_COLORS = {
    "TRACE": "\033[90m",
    "DEBUG": "\033[37m",
    "INFO": "\033[36m",
    "SUCCESS": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

# Riot development/production keys
_SECRET_RE = re.compile(r"RGAPI-[0-9A-Za-z-]+")


def redact(text: str) -> str:
    return _SECRET_RE.sub("RGAPI-***", text)


def _record_metadata(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.localtime(record.created)),
        "level": record.levelname,
        "service": getattr(record, "service", None),
        "logger": record.name,
        "function": record.funcName,
        "line_number": record.lineno,
        "process_id": record.process,
    }


class ConsoleFormatter(logging.Formatter):
    def __init__(self, *, color: bool = True) -> None:
        super().__init__()
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        md = _record_metadata(record)
        ctx = current_tags()
        parts = [
            md["timestamp"],
            record.levelname,
            md["service"] or "-",
            f"{record.module}:{md['function']}:{md['line_number']}",
            record.getMessage(),
        ]
        if ctx:
            parts.append(" ".join(f"{k}={v}" for k, v in sorted(ctx.items())))
        if record.exc_info:
            parts.append(self.formatException(record.exc_info))
        line = redact(" | ".join(parts))
        if not self._color:
            return line
        return f"{_LEVEL_COLORS.get(record.levelname, '')}{line}{_RESET}"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = _record_metadata(record)
        payload["message"] = record.getMessage()
        ctx = current_tags()
        if ctx:
            payload["context"] = ctx
        fields = getattr(record, "fields", None)
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return redact(json.dumps(payload, default=str, separators=(",", ":")))
