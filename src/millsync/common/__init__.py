from __future__ import annotations

from .logging import configure_logging, daily_log_paths

__all__ = ["configure_logging", "daily_log_paths"]
