"""Application orchestration entry points."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from logging import getLogger
from typing import TYPE_CHECKING

from millsync.adapters.artifacts import (
    read_dwx_jobs,
    read_od_log_jobs,
    read_xml_order_jobs,
    scan_dwx_files,
    scan_od_log_files,
    scan_xml_folders,
)
from millsync.adapters.ledger import HealthReport, LedgerClient
from millsync.config import ConfigurationError, SourcesConfig, get_sources_config
from millsync.domain.batch import BatchSummary, load_ledger, reconcile_batch
from millsync.domain.reconciliation import DWX_POLICY, OD_LOG_POLICY, XML_POLICY, Reconciler
from millsync.ui.report import render_job, render_summary

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import tzinfo
    from pathlib import Path

    from millsync.domain.ledger import LedgerCache
    from millsync.domain.ports import JobExtractor, OrderGateway
    from millsync.domain.reconciliation import ReconcileOutcome, SourcePolicy

log = getLogger(__name__)


class Source(StrEnum):
    DWX = "dwx"
    OD_LOG = "od"
    XML = "xml"


ALL_SOURCES: tuple[Source, ...] = (Source.DWX, Source.OD_LOG, Source.XML)


@dataclass(slots=True)
class RunSummary:
    """Per-source batch results of one run and the cache the run ended with."""

    batches: list[BatchSummary]
    ledger: LedgerCache

    @property
    def failed(self) -> int:
        return sum(batch.failed for batch in self.batches)


@dataclass(frozen=True, slots=True)
class _SourcePlan:
    source: Source
    policy: SourcePolicy
    directory: Path
    scan: Callable[[], list[Path]]
    extract: JobExtractor


def _directory(source: Source, directory: Path | None) -> Path:
    if directory is None:
        raise ConfigurationError(f"No directory configured for the {source} source")
    return directory


def _plan(source: Source, config: SourcesConfig, *, od_limit: int | None) -> _SourcePlan:
    zone = config.zone
    if source is Source.DWX:
        directory = _directory(source, config.dwx_dir)
        return _SourcePlan(
            source=source,
            policy=DWX_POLICY,
            directory=directory,
            scan=partial(scan_dwx_files, directory, since=config.filter_date, zone=zone),
            extract=partial(read_dwx_jobs, zone=zone),
        )
    if source is Source.OD_LOG:
        directory = _directory(source, config.od_log_dir)
        return _SourcePlan(
            source=source,
            policy=OD_LOG_POLICY,
            directory=directory,
            scan=partial(scan_od_log_files, directory, since=config.filter_date, limit=od_limit),
            extract=partial(read_od_log_jobs, zone=zone),
        )
    directory = _directory(source, config.xml_dir)
    return _SourcePlan(
        source=source,
        policy=XML_POLICY,
        directory=directory,
        scan=partial(scan_xml_folders, directory),
        extract=partial(read_xml_order_jobs, zone=zone),
    )


def _log_outcome(outcome: ReconcileOutcome, *, zone: tzinfo) -> None:
    for line in render_job(outcome.job, zone=zone):
        log.info("  %s", line)
    if outcome.succeeded:
        log.info("  -> %s", outcome.action)
    else:
        log.info("  -> %s failed", outcome.action)


def sync_sources(
    sources: Sequence[Source] = ALL_SOURCES,
    *,
    gateway: OrderGateway | None = None,
    config: SourcesConfig | None = None,
    od_limit: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunSummary:
    """Reconcile the selected sources in order against one ledger snapshot."""

    effective_config = config or get_sources_config()
    plans = [_plan(source, effective_config, od_limit=od_limit) for source in sources]
    effective_gateway = gateway or LedgerClient(zone=effective_config.zone)
    log.info(
        "Starting sync: sources=%s, filter_date=%s, zone=%s",
        ", ".join(plan.source for plan in plans),
        effective_config.filter_date,
        effective_config.zone,
    )

    ledger = load_ledger(effective_gateway)
    batches: list[BatchSummary] = []
    for plan in plans:
        artifacts = plan.scan()
        if not artifacts:
            log.warning("No %s artifacts to process in %s", plan.source, plan.directory)
        summary = reconcile_batch(
            artifacts=artifacts,
            extract=plan.extract,
            reconciler=Reconciler(
                gateway=effective_gateway,
                policy=plan.policy,
                zone=effective_config.zone,
            ),
            ledger=ledger,
            sleep=sleep,
            on_outcome=partial(_log_outcome, zone=effective_config.zone),
        )
        for line in render_summary(summary):
            log.info("%s", line)
        ledger = summary.ledger
        batches.append(summary)

    return RunSummary(batches=batches, ledger=ledger)


def check_ledger_health(*, client: LedgerClient | None = None) -> HealthReport:
    """Probe the ledger's list endpoint and log what came back."""

    effective_client = client or LedgerClient()
    report = effective_client.check_health()
    if report.ok:
        log.info(
            "Ledger reachable: HTTP %s, %s orders, %sms",
            report.status_code,
            report.order_count,
            report.latency_ms,
        )
    else:
        log.error(
            "Ledger check failed after %sms (status %s): %s",
            report.latency_ms,
            report.status_code if report.status_code is not None else "N/A",
            report.error,
        )
    return report
