"""Artifact source locations and equipment clock settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .env import optional_env_var
from .errors import ConfigurationError

DEFAULT_EQUIPMENT_TIMEZONE = "Asia/Seoul"


@dataclass(frozen=True, slots=True)
class SourcesConfig:
    """Where each machine drops its artifacts.

    A source whose directory is ``None`` is not configured and cannot be synced.
    """

    dwx_dir: Path | None = None
    od_log_dir: Path | None = None
    xml_dir: Path | None = None
    filter_date: date | None = None
    zone: tzinfo = ZoneInfo(DEFAULT_EQUIPMENT_TIMEZONE)


def _optional_path(name: str) -> Path | None:
    raw = optional_env_var(name)
    return Path(raw).expanduser() if raw else None


def parse_filter_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConfigurationError(f"Filter date must be YYYY-MM-DD, got {value!r}") from exc


def load_zone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown time zone: {name!r}") from exc


def get_sources_config() -> SourcesConfig:
    raw_date = optional_env_var("MILLSYNC_FILTER_DATE")
    return SourcesConfig(
        dwx_dir=_optional_path("MILLSYNC_DWX_DIR"),
        od_log_dir=_optional_path("MILLSYNC_OD_LOG_DIR"),
        xml_dir=_optional_path("MILLSYNC_XML_DIR"),
        filter_date=parse_filter_date(raw_date) if raw_date else None,
        zone=load_zone(optional_env_var("MILLSYNC_TIMEZONE") or DEFAULT_EQUIPMENT_TIMEZONE),
    )
