"""Structured per-session event logging for the screening engine.

Each event becomes a single record on the ``screening.events`` logger. The
console and ``*-human.log`` render it as one ``key=value`` line; the JSON log
keeps the whole event, one object per line. Every JSON event carries the turn
fields ``session_id``, ``step_index``, ``window`` and ``decision`` (null when
the event has none).
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
from typing import Any, Dict

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/screening.jsonl")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

TURN_FIELDS = ("session_id", "step_index", "window", "decision")

_HUMAN_FORMAT = "[%(asctime)s] %(levelname)s :: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_logger = logging.getLogger("screening.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


class JsonEventFormatter(logging.Formatter):
    """Renders the ``event`` attached to a record as a JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        event: Dict[str, Any] = {"ts": round(record.created, 3), "level": record.levelname}
        event.update(getattr(record, "event", {}))
        return json.dumps(event, ensure_ascii=False, default=str)


def _human_line(event: Dict[str, Any]) -> str:
    parts = [event["kind"]]
    parts.extend(f"{key}={event[key]}" for key in TURN_FIELDS if event.get(key) is not None)
    parts.extend(f"{key}={value}" for key, value in event.items() if key not in TURN_FIELDS and key != "kind")
    return " ".join(parts)


def _rotating(path: str) -> logging.handlers.RotatingFileHandler:
    return logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)


def _ensure_handlers() -> None:
    if _logger.handlers:
        return

    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(logging.Formatter(_HUMAN_FORMAT, datefmt=_DATE_FORMAT))
    _logger.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    json_file = _rotating(LOG_FILE)
    json_file.setFormatter(JsonEventFormatter())
    _logger.addHandler(json_file)

    stem, _ = os.path.splitext(LOG_FILE)
    human_file = _rotating(f"{stem}-human.log")
    human_file.setFormatter(logging.Formatter(_HUMAN_FORMAT, datefmt=_DATE_FORMAT))
    _logger.addHandler(human_file)


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Record one screening event for ``session_id``."""

    _ensure_handlers()
    event: Dict[str, Any] = {"kind": kind}
    event.update({key: None for key in TURN_FIELDS})
    event["session_id"] = session_id
    event.update(fields)
    _logger.info(_human_line(event), extra={"event": event})


__all__ = ["log_event", "JsonEventFormatter", "TURN_FIELDS"]
