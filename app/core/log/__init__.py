"""Application-wide logging: rich console output, daily files and request context.

Records flow through a ``QueueHandler`` so request handlers never block on
file I/O. Every record carries the identifiers bound with ``log_context``
(request, user, tenant and company), rendered as a ``key=value`` prefix on the
console and as fields of the JSON lines written to the daily file when
``json_format`` is enabled.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import SimpleQueue
from threading import RLock
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .context import ContextFilter, log_context
from .timing import timeit

__all__ = [
    "LoggingConfig",
    "JsonLineFormatter",
    "init_logging",
    "get_logger",
    "set_level",
    "shutdown_logging",
    "log_context",
    "timeit",
]

# Chatty libraries kept at WARNING unless the root level asks for DEBUG.
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "uvicorn.access")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class LoggingConfig:
    """Runtime configuration for the logging subsystem."""

    app_name: str = "financeia"
    level: str | int = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_dir: Optional[Path | str] = field(default_factory=lambda: os.getenv("LOG_DIR") or None)
    json_format: bool = field(default_factory=lambda: _env_flag("LOG_JSON"))
    console: bool = True
    rich_tracebacks: bool = True
    queue: bool = True
    quiet_loggers: tuple[str, ...] = QUIET_LOGGERS


_config_lock = RLock()
_config: LoggingConfig | None = None
_listener: QueueListener | None = None
_handlers: list[logging.Handler] = []
_context_filter = ContextFilter()


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class JsonLineFormatter(logging.Formatter):
    """Render a record and its bound context as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(getattr(record, "context_fields", {}))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class DailyFileHandler(logging.FileHandler):
    """Write to ``<prefix>_<date>.log``, switching files when the day changes."""

    def __init__(
        self,
        directory: Path,
        prefix: str,
        *,
        encoding: str = "utf-8",
        date_format: str = "%Y_%m_%d",
    ) -> None:
        self.directory = directory
        self.prefix = prefix
        self.date_format = date_format
        self.directory.mkdir(parents=True, exist_ok=True)
        self._current_date: date = datetime.now().date()
        super().__init__(self._path_for_date(self._current_date), mode="a", encoding=encoding)

    def _path_for_date(self, target_date: date) -> Path:
        return self.directory / f"{self.prefix}_{target_date.strftime(self.date_format)}.log"

    def emit(self, record: logging.LogRecord) -> None:
        record_date = datetime.fromtimestamp(record.created).date()
        if record_date != self._current_date:
            self._current_date = record_date
            if self.stream:
                self.stream.close()
                self.stream = None  # type: ignore[assignment]
            self.baseFilename = os.fspath(self._path_for_date(record_date))
        super().emit(record)


def _build_handlers(cfg: LoggingConfig, level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if cfg.console:
        if cfg.rich_tracebacks:
            install_rich_traceback(show_locals=False)
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=cfg.rich_tracebacks,
            show_path=False,
            markup=False,
            log_time_format="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
        handlers.append(console_handler)

    if cfg.log_dir:
        file_handler = DailyFileHandler(Path(cfg.log_dir), cfg.app_name)
        if cfg.json_format:
            file_handler.setFormatter(JsonLineFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s | %(levelname)-8s | %(name)s | %(context)s%(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(_context_filter)
    return handlers


def _quiet_libraries(cfg: LoggingConfig, level: int) -> None:
    floor = logging.WARNING if level > logging.DEBUG else logging.NOTSET
    for name in cfg.quiet_loggers:
        logging.getLogger(name).setLevel(floor)


def init_logging(**kwargs: object) -> None:
    """Install the root handlers described by ``LoggingConfig(**kwargs)``.

    Calling it again with the same options is a no-op; different options
    replace the previous handlers. Unknown keyword arguments are ignored.
    """

    global _config, _listener

    with _config_lock:
        cfg = LoggingConfig()
        for key, value in kwargs.items():
            if hasattr(cfg, key):
                setattr(cfg, key, value)

        if _config is not None:
            if _config == cfg:
                return
            _teardown_locked()

        level = _parse_level(cfg.level)
        root = logging.getLogger()
        root.setLevel(level)
        for handler in list(root.handlers):
            root.removeHandler(handler)

        handlers = _build_handlers(cfg, level)
        if cfg.queue and handlers:
            log_queue: SimpleQueue = SimpleQueue()
            queue_handler = QueueHandler(log_queue)
            # Context is a contextvar; resolve it before the record crosses threads.
            queue_handler.addFilter(_context_filter)
            root.addHandler(queue_handler)
            _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
            _listener.start()
        else:
            for handler in handlers:
                root.addHandler(handler)

        _handlers[:] = handlers
        _quiet_libraries(cfg, level)
        _config = cfg


def _teardown_locked() -> None:
    global _listener, _config
    if _listener is not None:
        _listener.stop()
    _listener = None
    _config = None
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in _handlers:
        handler.close()
    _handlers.clear()


def shutdown_logging() -> None:
    """Flush pending records and remove every handler."""

    with _config_lock:
        _teardown_locked()


def get_logger(name: str | None = None) -> logging.Logger:
    with _config_lock:
        if _config is None:
            init_logging()
        cfg = _config or LoggingConfig()
    return logging.getLogger(name or cfg.app_name)


def set_level(level: str | int) -> None:
    new_level = _parse_level(level)
    logging.getLogger().setLevel(new_level)
    for handler in _handlers:
        handler.setLevel(new_level)
