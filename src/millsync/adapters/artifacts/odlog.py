"""Extract jobs from CAMeleon CS daily operation logs (od-log).

Each job in a log is bracketed by three marker lines::

    FIle Open :20250708_1630_crown.nc
    Auto START : (2025 / 07 / 08)- 16 : 31 : 02
    WORK END : (2025 / 07 / 08)- 16 : 58 : 40

A job that was started but never reached ``WORK END`` (because another file was
opened or the log ends) is reported as still running.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final

from millsync.domain.model import Job, JobStatus
from millsync.domain.ports import ArtifactError
from millsync.domain.timestamps import minutes_between, parse_od_log

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime, tzinfo
    from pathlib import Path

log = getLogger(__name__)

EQUIPMENT_MODEL: Final = "CAMeleon CS"

# "FIle" is how the controller spells it.
_FILE_OPEN = re.compile(r"FIle Open :(.+?)\.nc")
_AUTO_START = re.compile(r"Auto START : \((.+?)\)- (.+)")
_WORK_END = re.compile(r"WORK END : \((.+?)\)- (.+)")


@dataclass(slots=True)
class _OpenJob:
    program: str
    start: datetime | None = None


def rounded_minutes(start: datetime, end: datetime) -> int:
    """Elapsed minutes rounded half up."""

    return math.floor(minutes_between(start, end) + 0.5)


def _job(current: _OpenJob, end: datetime | None, *, artifact: str) -> Job:
    if current.start is None:
        raise ValueError(f"Job {current.program!r} has no start time")
    return Job(
        orderer=current.program,
        equipment_model=EQUIPMENT_MODEL,
        work_start_time=current.start,
        status=JobStatus.IN_PROGRESS if end is None else JobStatus.COMPLETED,
        work_end_time=end,
        total_work_time_minutes=rounded_minutes(current.start, end) if end else None,
        artifact=artifact,
    )


def parse_od_log_lines(lines: Iterable[str], *, zone: tzinfo, artifact: str) -> list[Job]:
    jobs: list[Job] = []
    current: _OpenJob | None = None

    for line in lines:
        if "FIle Open :" in line:
            if current is not None and current.start is not None:
                jobs.append(_job(current, None, artifact=artifact))
            opened = _FILE_OPEN.search(line)
            current = _OpenJob(program=opened.group(1).strip() + ".nc") if opened else None
            continue

        if current is None:
            continue

        if "Auto START :" in line:
            started = _AUTO_START.search(line)
            if started:
                current.start = parse_od_log(started.group(1), started.group(2), zone=zone)
        elif "WORK END :" in line and current.start is not None:
            ended = _WORK_END.search(line)
            if ended:
                end = parse_od_log(ended.group(1), ended.group(2), zone=zone)
                jobs.append(_job(current, end, artifact=artifact))
                current = None

    if current is not None and current.start is not None:
        jobs.append(_job(current, None, artifact=artifact))
    return jobs


def read_od_log_jobs(path: Path, *, zone: tzinfo) -> list[Job]:
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ArtifactError(f"Cannot read {path.name}: {exc}") from exc
    try:
        jobs = parse_od_log_lines(content.splitlines(), zone=zone, artifact=path.name)
    except ValueError as exc:
        raise ArtifactError(f"Invalid od-log {path.name}: {exc}") from exc

    running = sum(1 for job in jobs if job.is_running)
    log.info(
        "%s: %s jobs (%s completed, %s running)",
        path.name,
        len(jobs),
        len(jobs) - running,
        running,
    )
    return jobs
