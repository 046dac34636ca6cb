"""
Logging setup for Portfolio Radar.

Console output goes through rich, optional file output is one JSON object
per line. Run context (task, run id, batch) lives in a ContextVar, so each
asyncio task sees only the context its own refresh entered.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from portfolio_radar.config import get_settings

_log_context: ContextVar[Dict[str, Any]] = ContextVar("radar_log_context", default={})

# Attributes every LogRecord carries; anything else was added by extra= or the context
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai", "openai")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, extra fields included."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update({k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS})

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ContextFilter(logging.Filter):
    """Copy the current run context onto each record."""

    @property
    def context(self) -> Dict[str, Any]:
        return dict(_log_context.get())

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            setattr(record, key, value)
        return True


context_filter = ContextFilter()


class LogContext:
    """
    Add keys to the run context for the duration of a ``with`` block.

    Nested blocks layer on top of the outer context; leaving a block restores
    exactly what was there before it was entered.
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.context})
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        _log_context.reset(self._token)
        self._token = None


def _console_handler(level: str, show_locals: bool) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
        tracebacks_show_locals=show_locals,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _file_handler(path: Path, level: str, structured: bool) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    handler.setLevel(level)
    return handler


def setup_logging(
    log_level: Optional[str] = None,
    log_file_path: Optional[Path] = None,
    use_structured_logging: bool = True,
) -> None:
    """
    Configure the root logger.

    Args:
        log_level: Level name; defaults to settings
        log_file_path: Also write to this file; defaults to settings
        use_structured_logging: JSON lines in the file instead of plain text
    """
    settings = get_settings()
    level = (log_level or settings.log_level).upper()
    log_file_path = log_file_path or settings.get_log_file_path()

    handlers = [_console_handler(level, settings.dev_mode)]
    if log_file_path:
        handlers.append(_file_handler(log_file_path, level, use_structured_logging))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.addFilter(context_filter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"log_level": level, "log_file": str(log_file_path) if log_file_path else None},
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
