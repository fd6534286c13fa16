"""
Diagnostic JSONL logging bootstrap.

Status lines for users go through the EventLog; this module only wires the
optional structured sink used when debugging the CLI itself, and can copy
printed status events into it. The sink is attached when BALE_LOG_PATH is
set so builds never litter the project.
"""

import json
import logging
import os
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .events.schemas import LogEvent

LOG_PATH_ENV = "BALE_LOG_PATH"
LOG_LEVEL_ENV = "BALE_LOG_LEVEL"

_events_logger = logging.getLogger("bale_cli.events")

_RESERVED_ATTRS = frozenset(
    (
        "msg",
        "args",
        "levelname",
        "levelno",
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
        "name",
    )
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def format_record(self, record: logging.LogRecord) -> dict:
        base = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "lvl": record.levelname,
            "schema": {"name": "bale.log", "ver": "1.0.0"},
            "logger": record.name,
            "event": getattr(record, "event", None),
            "message": record.getMessage(),
        }
        if isinstance(record.msg, dict):
            base.update(record.msg)
        for k, v in record.__dict__.items():
            if k in _RESERVED_ATTRS:
                continue
            base.setdefault(k, v)
        return base

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self.format_record(record), ensure_ascii=False, default=str)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)


def init_json_logging(path: str | None = None, level: str | None = None) -> JsonlHandler | None:
    """Attach the JSONL sink to the root logger.

    Args:
        path: Log file path. Defaults to $BALE_LOG_PATH; nothing is attached
            when neither is set.
        level: Level name. Defaults to $BALE_LOG_LEVEL, then INFO.

    Returns:
        The installed handler, or None when logging stays disabled.
    """
    path = path or os.environ.get(LOG_PATH_ENV)
    if not path:
        return None
    level = (level or os.environ.get(LOG_LEVEL_ENV, "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    # Avoid duplicate sinks when called more than once per process
    for h in list(root.handlers):
        if isinstance(h, JsonlHandler):
            root.removeHandler(h)
    handler = JsonlHandler(path)
    root.addHandler(handler)
    return handler


def log_event(event: LogEvent) -> None:
    """EventLog subscriber copying printed status lines into the JSONL sink."""
    level = logging.ERROR if event.is_error else logging.INFO
    _events_logger.log(level, f"{event.category} {event.label}", extra={"event": event.category})
