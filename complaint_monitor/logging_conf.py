"""structlog setup: JSON lines to the console, a rolling monitor log, an error log
and one file per monitored company."""

from __future__ import annotations

import logging
import logging.config
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Iterable

import structlog

from .config.loader import MonitorPaths
from .engine.slug import slugify

ROOT_LOGGER = "complaint_monitor"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

_configured_dir: Path | None = None
_configure_lock = Lock()


def _rotating(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "json",
        "filename": str(path),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf-8",
    }


def _dict_config(directory: Path, level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": JSON_FORMAT},
        },
        "handlers": {
            "console": {"class": "logging.StreamHandler", "level": level, "formatter": "json"},
            "monitor_file": _rotating(directory / "monitor.log", "INFO"),
            "error_file": _rotating(directory / "error.log", "ERROR"),
        },
        "loggers": {
            ROOT_LOGGER: {
                "handlers": ["console", "monitor_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure handlers once per log directory and return the app logger.

    Switching ``COMPLAINT_MONITOR_HOME`` re-points the file handlers.
    """

    global _configured_dir
    paths = MonitorPaths.from_env()
    directory = paths.logs_dir
    with _configure_lock:
        if _configured_dir != directory:
            paths.entity_logs_dir.mkdir(parents=True, exist_ok=True)
            logging.config.dictConfig(_dict_config(directory, "DEBUG" if verbose else "INFO"))
            structlog.configure(
                processors=[
                    structlog.contextvars.merge_contextvars,
                    structlog.stdlib.add_log_level,
                    structlog.processors.TimeStamper(fmt="iso", utc=True),
                    structlog.processors.StackInfoRenderer(),
                    structlog.processors.format_exc_info,
                    structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
                ],
                logger_factory=structlog.stdlib.LoggerFactory(),
                cache_logger_on_first_use=True,
            )
            _configured_dir = directory
    return structlog.get_logger(ROOT_LOGGER)


def entity_logger(entity: str, verbose: bool = False) -> structlog.BoundLogger:
    """Logger bound to ``entity`` that also writes ``logs/entities/<slug>.log``."""

    configure_logging(verbose)
    slug = slugify(entity) or "unnamed"
    path = MonitorPaths.from_env().entity_logs_dir / f"{slug}.log"
    name = f"{ROOT_LOGGER}.entity.{slug}"
    _ensure_file_handler(logging.getLogger(name), path)
    return structlog.get_logger(name).bind(entity=entity)


def _ensure_file_handler(py_logger: logging.Logger, path: Path) -> None:
    for handler in list(py_logger.handlers):
        if isinstance(handler, logging.FileHandler):
            if handler.baseFilename == str(path):
                return
            py_logger.removeHandler(handler)
            handler.close()
    handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    shared = logging.getLogger(ROOT_LOGGER).handlers
    if shared:
        handler.setFormatter(shared[0].formatter)
    handler.setLevel(logging.INFO)
    py_logger.addHandler(handler)


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        return stream.readlines()[-line_count:]


def available_logs() -> Iterable[Path]:
    paths = MonitorPaths.from_env()
    if not paths.logs_dir.exists():
        return []
    return sorted(paths.logs_dir.glob("*.log")) + sorted(paths.entity_logs_dir.glob("*.log"))


__all__ = ["available_logs", "configure_logging", "entity_logger", "tail_log"]
