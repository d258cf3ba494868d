"""
Request correlation and process-wide logging state.

The request id lives in a ``ContextVar`` so that it follows a request
through threadpool-executed FastAPI handlers and async code alike. Routes
call ``set_request_id()`` once at entry; every log line emitted afterwards
in that context carries the id.

Environment Variables:
    - DECIBLE_LOG_LEVEL: Override log level (1-4 or name)
    - DECIBLE_LOG_DIR: Directory for the JSONL log file
    - DECIBLE_JSONL_FILE: JSONL filename (default decible.jsonl)
    - DECIBLE_LOG_ROTATE_BYTES: Max size before rotation
    - DECIBLE_LOG_ROTATE_BACKUP: Number of rotated files kept
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict

import yaml

from .levels import LEVEL_NAMES, LogLevel

_request_id: ContextVar[str] = ContextVar("decible_request_id", default="-")

_configured: bool = False
_log_config: Dict[str, Any] = {}
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Return the current request id, or "-" outside a request."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(int(_current_level), "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def get_log_config() -> Dict[str, Any]:
    return _log_config


def set_log_config(config: Dict[str, Any]) -> None:
    global _log_config
    _log_config = config


def _int_env(name: str) -> int | None:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def read_logging_config() -> Dict[str, Any]:
    """
    Resolve the logging configuration.

    Priority (highest first): environment variables, the ``logging``
    section of the settings file, built-in defaults. The settings file is
    read directly with PyYAML so that logging can come up before the rest
    of the configuration layer is imported.
    """
    cfg: Dict[str, Any] = {}

    settings_path = Path(os.getenv("DECIBLE_SETTINGS", "config/settings.yaml"))
    if settings_path.is_file():
        try:
            with settings_path.open("r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            raw = {}
        if isinstance(raw, dict) and isinstance(raw.get("logging"), dict):
            cfg.update(raw["logging"])

    if os.getenv("DECIBLE_LOG_LEVEL"):
        cfg["level"] = os.environ["DECIBLE_LOG_LEVEL"]
    if os.getenv("DECIBLE_LOG_DIR"):
        cfg["log_dir"] = os.environ["DECIBLE_LOG_DIR"]
    if os.getenv("DECIBLE_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["DECIBLE_JSONL_FILE"]

    rotate_bytes = _int_env("DECIBLE_LOG_ROTATE_BYTES")
    if rotate_bytes is not None:
        cfg["rotate_max_bytes"] = rotate_bytes
    rotate_backup = _int_env("DECIBLE_LOG_ROTATE_BACKUP")
    if rotate_backup is not None:
        cfg["rotate_backup_count"] = rotate_backup

    return cfg
