"""Plain-text renderings of jobs and batch results for the run log."""

from __future__ import annotations

from typing import TYPE_CHECKING

from millsync.domain.timestamps import LEDGER_FORMAT

if TYPE_CHECKING:
    from datetime import tzinfo

    from millsync.domain.batch import BatchSummary
    from millsync.domain.model import Job


def render_job(job: Job, *, zone: tzinfo) -> list[str]:
    end = job.work_end_time.astimezone(zone).strftime(LEDGER_FORMAT) if job.work_end_time else None
    duration = (
        f"{job.total_work_time_minutes} min" if job.total_work_time_minutes is not None else "n/a"
    )
    lines = [
        f"Orderer:   {job.orderer}",
        f"Equipment: {job.equipment_model}",
        f"Start:     {job.work_start_time.astimezone(zone).strftime(LEDGER_FORMAT)}",
        f"End:       {end or '(running)'}",
        f"Duration:  {duration}",
        f"Status:    {job.status}",
        f"Errors:    {job.error_text or 'none'}",
    ]
    lines.extend(f"  {key}: {value}" for key, value in sorted(job.attributes.items()))
    return lines


def render_summary(summary: BatchSummary) -> list[str]:
    in_progress, completed = summary.ledger.counts()
    return [
        f"[{summary.source}] artifacts: {summary.artifacts}, jobs: {summary.jobs}",
        f"[{summary.source}] created: {summary.created}, updated: {summary.updated}, "
        f"skipped: {summary.skipped}, unchanged: {summary.unchanged}, failed: {summary.failed}",
        f"[{summary.source}] ledger: {len(summary.ledger)} orders "
        f"({in_progress} in progress, {completed} completed)",
    ]
