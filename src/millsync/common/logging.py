"""Shared logging helpers for millsync."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ERROR_DIR_NAME = "errors"


def daily_log_paths(log_dir: Path, *, today: date | None = None) -> tuple[Path, Path]:
    """Return the run log and error log paths for ``today``."""

    stamp = (today or date.today()).isoformat()
    return log_dir / f"log_{stamp}.txt", log_dir / ERROR_DIR_NAME / f"error_{stamp}.txt"


def _daily_file_handlers(log_dir: Path) -> list[logging.Handler]:
    log_path, error_path = daily_log_paths(log_dir)
    opened: list[logging.Handler] = []
    try:
        error_path.parent.mkdir(parents=True, exist_ok=True)
        opened.append(logging.FileHandler(log_path, encoding="utf-8"))
        error_handler = logging.FileHandler(error_path, encoding="utf-8")
    except OSError:
        for handler in opened:
            handler.close()
        raise
    error_handler.setLevel(logging.ERROR)
    opened.append(error_handler)
    return opened


def configure_logging(
    *,
    level: int = logging.INFO,
    force: bool = False,
    log_dir: Path | None = None,
) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. When ``log_dir`` is
    given, records are also appended to a per-day log file and ERROR records to a
    per-day file under ``errors/``. If either file cannot be opened the error is
    raised and the root logger is left as it was. Pass ``force=True`` to
    reconfigure during tests.
    """

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        handlers.extend(_daily_file_handlers(log_dir))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=force,
    )
