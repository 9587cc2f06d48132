"""List the artifacts each machine left in its drop directory."""

from __future__ import annotations

import re
from datetime import datetime, time
from logging import getLogger
from typing import TYPE_CHECKING

from millsync.domain.ports import SourceDirectoryError

if TYPE_CHECKING:
    from datetime import date, tzinfo
    from os import stat_result
    from pathlib import Path

log = getLogger(__name__)

_OD_LOG_NAME = re.compile(r"^\d{8}$")


def _entries(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise SourceDirectoryError(f"Cannot read artifact directory {directory}: {exc}") from exc


def _touched_at(stats: stat_result) -> float:
    # st_birthtime is missing on most Linux filesystems.
    born = getattr(stats, "st_birthtime", None)
    return max(born, stats.st_mtime) if born is not None else stats.st_mtime


def scan_dwx_files(directory: Path, *, since: date | None, zone: tzinfo) -> list[Path]:
    """DWX-52D ``*.json`` records created or modified on or after ``since``, by name."""

    candidates = [
        entry for entry in _entries(directory) if entry.suffix == ".json" and entry.is_file()
    ]
    if since is None:
        return candidates
    cutoff = datetime.combine(since, time.min, tzinfo=zone).timestamp()
    selected = [entry for entry in candidates if _touched_at(entry.stat()) >= cutoff]
    log.info(
        "%s of %s JSON files in %s are from %s or later",
        len(selected),
        len(candidates),
        directory,
        since,
    )
    return selected


def scan_od_log_files(
    directory: Path,
    *,
    since: date | None,
    limit: int | None = None,
) -> list[Path]:
    """Daily od-log files (named ``YYYYMMDD``), newest first."""

    candidates = [
        entry
        for entry in _entries(directory)
        if _OD_LOG_NAME.match(entry.name) and entry.is_file()
    ]
    if since is not None:
        threshold = since.strftime("%Y%m%d")
        selected = [entry for entry in candidates if entry.name >= threshold]
        log.info(
            "%s of %s od-log files in %s are from %s or later",
            len(selected),
            len(candidates),
            directory,
            since,
        )
    else:
        selected = candidates
    selected.reverse()
    if limit is not None:
        selected = selected[:limit]
    return selected


def scan_xml_folders(directory: Path) -> list[Path]:
    """One sub-directory per XML order, by name."""

    return [entry for entry in _entries(directory) if entry.is_dir()]
