from __future__ import annotations

import json
import logging
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Channels that get a file of their own on top of app.log
CHANNELS = {
    "rdash.sales": "sales.log",
    "rdash.cash": "cash.log",
}

_EVENT_RE = re.compile(r"^([a-z][a-z0-9_]*)((?:\s+[a-z_]+=\S*)*)\s*$")
_FIELD_RE = re.compile(r"([a-z_]+)=(\S*)")


def split_event(message: str) -> tuple[str | None, dict[str, str]]:
    """`"sale_recorded sale_id=3 total=45.00"` -> `("sale_recorded", {"sale_id": "3", "total": "45.00"})`.

    Free-text messages return `(None, {})`.
    """
    m = _EVENT_RE.match(message)
    if not m:
        return None, {}
    return m.group(1), dict(_FIELD_RE.findall(m.group(2)))


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        payload = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        event, fields = split_event(message)
        if event:
            payload["event"] = event
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _handler(path: Path, level: int) -> RotatingFileHandler:
    fh = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=5, encoding="utf-8")
    fh.setFormatter(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S"))
    fh.setLevel(level)
    return fh


def setup_logging(logs_dir: Path, level: int = logging.INFO) -> None:
    logs_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    root.addHandler(_handler(logs_dir / "app.log", logging.INFO))
    root.addHandler(_handler(logs_dir / "errors.log", logging.ERROR))

    for channel, filename in CHANNELS.items():
        logger = logging.getLogger(channel)
        logger.addHandler(_handler(logs_dir / filename, logging.INFO))
        logger.setLevel(logging.INFO)
