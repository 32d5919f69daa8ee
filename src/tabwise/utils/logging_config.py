# src/tabwise/utils/logging_config.py
"""
File-routed logging for the API boundary.

Usage:
    from tabwise.utils.logging_config import Logger, LogFiles, set_trace_id

    set_trace_id()
    Logger.info("Detecting hoarders", file=LogFiles.DETECTIONS)
    Logger.error("Detection failed", file=LogFiles.ERROR)

Every line carries the caller's file and line plus the trace id of the
current request context.

Configuration via environment variables:
    TABWISE_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
    TABWISE_LOG_DIR: Base directory for log files (default: logs/)
    TABWISE_LOG_MAX_BYTES: Max size per log file in bytes (default: 10MB)
    TABWISE_LOG_BACKUP_COUNT: Number of rotated files to keep (default: 5)
"""

from __future__ import annotations

import logging
import os
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

_trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "tabwise.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(trace_id)s] %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_CONFIG_FILE = Path(__file__).parent / "log_config.yaml"

_DEFAULT_FILES = {
    "detections": "detections/detections.log",
    "research_sessions": "detections/research_sessions.log",
    "api": "api/api.log",
    "error": "errors/error.log",
}


class _LogFilesMeta(type):
    def __getattr__(cls, name: str) -> str:
        files = cls._files()
        key = name.lower()
        if key in files:
            return files[key]
        raise AttributeError(f"Log file '{name}' not found in config")


class LogFiles(metaclass=_LogFilesMeta):
    """
    Named log files from ``log_config.yaml``.

    ``LogFiles.DETECTIONS`` resolves to the ``detections`` entry. Add a new
    file by adding an entry under ``files`` in the YAML.
    """

    _cache: Optional[Dict[str, str]] = None

    @classmethod
    def _files(cls) -> Dict[str, str]:
        if cls._cache is None:
            files = dict(_DEFAULT_FILES)
            try:
                import yaml

                if LOG_CONFIG_FILE.exists():
                    with open(LOG_CONFIG_FILE, "r", encoding="utf-8") as f:
                        config = yaml.safe_load(f) or {}
                    files.update({str(k).lower(): str(v) for k, v in (config.get("files") or {}).items()})
            except Exception as e:
                logging.getLogger(__name__).warning(f"Could not read {LOG_CONFIG_FILE}: {e}")
            cls._cache = files
        return cls._cache


class _TraceIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id_var.get() or "-"
        return True


def _settings() -> Dict[str, object]:
    return {
        "level": os.environ.get("TABWISE_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        "base_dir": os.environ.get("TABWISE_LOG_DIR", DEFAULT_LOG_DIR),
        "max_bytes": int(os.environ.get("TABWISE_LOG_MAX_BYTES", DEFAULT_MAX_BYTES)),
        "backup_count": int(os.environ.get("TABWISE_LOG_BACKUP_COUNT", DEFAULT_BACKUP_COUNT)),
    }


class Logger:
    """Static facade routing messages to per-file rotating loggers."""

    _settings: Optional[Dict[str, object]] = None
    _loggers: Dict[str, logging.Logger] = {}

    @classmethod
    def init(
        cls,
        level: Optional[str] = None,
        base_dir: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        if cls._settings is not None:
            return
        settings = _settings()
        if level:
            settings["level"] = level.upper()
        if base_dir:
            settings["base_dir"] = base_dir
        if max_bytes:
            settings["max_bytes"] = max_bytes
        if backup_count:
            settings["backup_count"] = backup_count
        cls._settings = settings

    @classmethod
    def _get(cls, file: Optional[str]) -> logging.Logger:
        cls.init()
        path = str(Path(str(cls._settings["base_dir"])) / (file or DEFAULT_LOG_FILE))
        if path not in cls._loggers:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path,
                maxBytes=int(cls._settings["max_bytes"]),
                backupCount=int(cls._settings["backup_count"]),
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
            handler.addFilter(_TraceIdFilter())

            file_logger = logging.getLogger(f"tabwise.files.{path}")
            file_logger.propagate = False
            file_logger.addHandler(handler)
            cls._loggers[path] = file_logger

        file_logger = cls._loggers[path]
        file_logger.setLevel(str(cls._settings["level"]))
        return file_logger

    # stacklevel=2 points the record at the caller of Logger.<level>
    @classmethod
    def debug(cls, message: str, file: Optional[str] = None) -> None:
        cls._get(file).debug(message, stacklevel=2)

    @classmethod
    def info(cls, message: str, file: Optional[str] = None) -> None:
        cls._get(file).info(message, stacklevel=2)

    @classmethod
    def warning(cls, message: str, file: Optional[str] = None) -> None:
        cls._get(file).warning(message, stacklevel=2)

    @classmethod
    def error(cls, message: str, file: Optional[str] = None) -> None:
        cls._get(file).error(message, stacklevel=2)

    @classmethod
    def close(cls) -> None:
        for file_logger in cls._loggers.values():
            for handler in list(file_logger.handlers):
                handler.close()
                file_logger.removeHandler(handler)
        cls._loggers.clear()
        cls._settings = None


def generate_trace_id() -> str:
    return f"req-{uuid.uuid4().hex[:12]}"


def set_trace_id(trace_id: Optional[str] = None) -> str:
    """Set (or generate) the trace id for the current context and return it."""
    tid = trace_id or generate_trace_id()
    _trace_id_var.set(tid)
    return tid


def get_trace_id() -> Optional[str]:
    return _trace_id_var.get()


def clear_trace_id() -> None:
    _trace_id_var.set(None)
