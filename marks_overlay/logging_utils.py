"""Logging setup for the marks overlay."""
from __future__ import annotations

import logging
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from version import is_dev_build

LOGGER_NAME = "MarksOverlay"
LOG_FILE_NAME = "marks_overlay.log"
MAX_LOG_BYTES = 512 * 1024

_LOGGER = logging.getLogger(LOGGER_NAME)
_active_handler: Optional[logging.Handler] = None


def resolve_logs_dir(root: Path) -> Path:
    return root / "logs"


def _build_formatter() -> logging.Formatter:
    formatter = logging.Formatter(
        "%(asctime)s.%(msecs)03d UTC - %(levelname)s - %(name)s - %(message)s",
        "%Y-%m-%d %H:%M:%S",
    )
    formatter.converter = time.gmtime
    return formatter


def build_rotating_file_handler(
    logs_dir: Path,
    file_name: str,
    *,
    retention: int,
    max_bytes: int,
    formatter: logging.Formatter,
) -> RotatingFileHandler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        logs_dir / file_name,
        maxBytes=max_bytes,
        backupCount=max(0, retention - 1),
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def _replace_handler(handler: logging.Handler) -> None:
    global _active_handler
    if _active_handler is not None:
        _LOGGER.removeHandler(_active_handler)
        try:
            _active_handler.close()
        except Exception:
            pass
    _LOGGER.addHandler(handler)
    _active_handler = handler


def configure_logging(level: Optional[int] = None, log_dir: Optional[Path] = None, retention: int = 5) -> logging.Logger:
    """Attach one handler to the ``MarksOverlay`` logger tree, replacing any previous one.

    Without ``level`` development builds log at DEBUG and releases at INFO.
    Without ``log_dir`` records go to stderr. A directory that cannot be used
    also falls back to stderr, with a warning.
    """

    if level is None:
        level = logging.DEBUG if is_dev_build() else logging.INFO
    retention = max(1, int(retention))
    formatter = _build_formatter()
    _LOGGER.setLevel(level)
    if log_dir is None:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        _replace_handler(stream_handler)
        return _LOGGER
    try:
        handler = build_rotating_file_handler(
            log_dir,
            LOG_FILE_NAME,
            retention=retention,
            max_bytes=MAX_LOG_BYTES,
            formatter=formatter,
        )
    except OSError as exc:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        _replace_handler(stream_handler)
        _LOGGER.warning("Failed to initialise file logging in %s: %s", log_dir, exc)
        return _LOGGER

    _replace_handler(handler)
    _LOGGER.debug(
        "Logging initialised: path=%s retention=%d max_bytes=%d backup_count=%d",
        log_dir / LOG_FILE_NAME,
        retention,
        MAX_LOG_BYTES,
        max(0, retention - 1),
    )
    return _LOGGER


def active_handler() -> Optional[logging.Handler]:
    return _active_handler
