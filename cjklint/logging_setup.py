from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cjklint.env import env_int, env_str, env_truthy

_FILE_FLAG = "_cjklint_file_log"
_CONSOLE_FLAG = "_cjklint_console_log"

DEFAULT_LOG_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_LOG_BACKUPS = 3


def log_level_from_env(default: str | None = None) -> str | None:
    """``CJKLINT_LOG_LEVEL`` as an upper-case level name; unknown names give ``default``."""

    raw = env_str("CJKLINT_LOG_LEVEL").upper()
    if raw and isinstance(logging.getLevelName(raw), int):
        return raw
    return default


def _flagged(root: logging.Logger, flag: str) -> logging.Handler | None:
    for h in root.handlers:
        if getattr(h, flag, False):
            return h
    return None


def ensure_file_logging(*, log_dir: Path, filename: str = "cjklint.log") -> Path:
    """Attach a rotating file handler to the root logger (idempotent).

    Used by the HTTP service next to uvicorn's own handlers. Size and backup
    count come from ``CJKLINT_LOG_MAX_BYTES`` and ``CJKLINT_LOG_BACKUPS``.
    """

    if env_truthy("CJKLINT_DISABLE_FILE_LOG"):
        return log_dir / filename

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = (log_dir / filename).resolve()

    root = logging.getLogger()
    existing = _flagged(root, _FILE_FLAG)
    if existing is not None:
        return Path(existing.baseFilename).resolve()  # type: ignore[attr-defined]
    for h in root.handlers:
        base = getattr(h, "baseFilename", None)
        if base and Path(base).resolve() == log_file:
            return log_file

    handler = RotatingFileHandler(
        log_file,
        maxBytes=max(1024, env_int("CJKLINT_LOG_MAX_BYTES", DEFAULT_LOG_MAX_BYTES)),
        backupCount=max(0, env_int("CJKLINT_LOG_BACKUPS", DEFAULT_LOG_BACKUPS)),
        encoding="utf-8",
    )
    setattr(handler, _FILE_FLAG, True)
    handler.setLevel(logging.INFO)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)

    lvl = log_level_from_env()
    if lvl:
        root.setLevel(lvl)

    return log_file


def ensure_console_logging(*, default_level: str = "WARNING") -> logging.Handler:
    """Send log records to stderr for the command line tool (idempotent).

    stdout carries the formatted document, so diagnostics never go there.
    """

    root = logging.getLogger()
    handler = _flagged(root, _CONSOLE_FLAG)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        setattr(handler, _CONSOLE_FLAG, True)
        handler.setFormatter(logging.Formatter("cjklint: %(levelname)s %(message)s"))
        root.addHandler(handler)
    elif handler.stream is not sys.stderr:  # type: ignore[attr-defined]
        handler.setStream(sys.stderr)  # type: ignore[attr-defined]
    root.setLevel(log_level_from_env(default_level.upper()))
    return handler
