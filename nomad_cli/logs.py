"""Logging setup for the Nomad CLI."""

from __future__ import annotations

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

from nomad_env import get_env

from .console import err_console

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def init_logging(log_dir: Path, *, verbose: bool = False, level: Optional[str] = None) -> Optional[Path]:
    """Attach a rotating file handler (and a stderr handler when ``verbose``).

    Returns the log file path, or None when the log directory is not writable.
    """

    level_name = (level or get_env("NOMAD_LOG_LEVEL") or "INFO").upper()
    handlers: List[logging.Handler] = []
    log_path: Optional[Path] = None

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        # Example: nomad_20261016.log
        log_path = log_dir / f"nomad_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)
    except OSError:
        log_path = None

    if verbose:
        handlers.append(RichHandler(console=err_console, show_path=False, rich_tracebacks=True))

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        handlers=handlers,
        force=True,
    )
    return log_path


__all__ = ["init_logging"]
