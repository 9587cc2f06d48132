"""Jobs observed on the milling machines and orders held by the remote ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


class JobStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class OrderResult(StrEnum):
    """Two-state view the ledger keeps of an order."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def resolve_job_status(*, finished: bool, succeeded: bool) -> JobStatus:
    if not finished:
        return JobStatus.IN_PROGRESS
    return JobStatus.COMPLETED if succeeded else JobStatus.FAILED


@dataclass(frozen=True, slots=True, kw_only=True)
class Job:
    """One unit of machine work extracted from an artifact.

    ``status`` is resolved by the extractor: a job without an end time is still
    running, a finished job is completed or failed depending on the artifact's own
    success flag.
    """

    orderer: str
    equipment_model: str
    work_start_time: datetime
    status: JobStatus
    work_end_time: datetime | None = None
    total_work_time_minutes: int | None = None
    errors: tuple[str, ...] = ()
    artifact: str | None = None
    attributes: Mapping[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        if (self.work_end_time is None) != (self.status is JobStatus.IN_PROGRESS):
            raise ValueError(
                f"Job for {self.orderer!r} has status {self.status} "
                f"but end time {self.work_end_time!r}"
            )

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.IN_PROGRESS

    @property
    def error_text(self) -> str | None:
        return ", ".join(self.errors) if self.errors else None


@dataclass(frozen=True, slots=True, kw_only=True)
class Order:
    """Cached copy of a ledger order."""

    orderer: str
    work_start_time: datetime
    result: OrderResult
    order_code: str | None = None
    work_end_time: datetime | None = None
    total_work_time_minutes: int | None = None
    error: str | None = None
    equipment_model: str | None = None

    @property
    def is_in_progress(self) -> bool:
        return self.result is OrderResult.IN_PROGRESS
