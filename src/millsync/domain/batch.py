"""Run one source's artifacts through the reconciler, one job at a time."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .ledger import LedgerCache
from .ports import ArtifactError, LedgerError
from .reconciliation import ReconcileAction, describe_ledger_error

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from .ports import JobExtractor, OrderGateway
    from .reconciliation import Reconciler, ReconcileOutcome

log = getLogger(__name__)


@dataclass(slots=True)
class BatchSummary:
    """Counters for one source run plus the ledger cache it ended with."""

    source: str
    artifacts: int = 0
    jobs: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    unchanged: int = 0
    failed: int = 0
    ledger: LedgerCache = field(default_factory=LedgerCache)

    def record(self, outcome: ReconcileOutcome) -> None:
        self.jobs += 1
        if not outcome.succeeded:
            self.failed += 1
        elif outcome.action is ReconcileAction.CREATE:
            self.created += 1
        elif outcome.action is ReconcileAction.UPDATE:
            self.updated += 1
        elif outcome.action is ReconcileAction.SKIP:
            self.skipped += 1
        else:
            self.unchanged += 1

    @property
    def succeeded(self) -> int:
        return self.created + self.updated + self.skipped + self.unchanged


def load_ledger(gateway: OrderGateway) -> LedgerCache:
    """Fetch the initial snapshot; an unreachable ledger degrades to an empty cache."""

    try:
        orders = gateway.list_orders()
    except LedgerError as exc:
        log.warning(
            "Could not list ledger orders, duplicate detection disabled: %s",
            describe_ledger_error(exc),
        )
        return LedgerCache()
    ledger = LedgerCache.from_listing(orders)
    in_progress, completed = ledger.counts()
    log.info(
        "Loaded %s ledger orders (%s in progress, %s completed)",
        len(ledger),
        in_progress,
        completed,
    )
    return ledger


def reconcile_batch(
    *,
    artifacts: Sequence[Path],
    extract: JobExtractor,
    reconciler: Reconciler,
    ledger: LedgerCache,
    sleep: Callable[[float], None] = time.sleep,
    on_outcome: Callable[[ReconcileOutcome], None] | None = None,
) -> BatchSummary:
    """Reconcile every job of every artifact in order, threading the cache through.

    A broken artifact is counted as failed and the run moves on. Each create or
    update attempt is followed by the source's cool-down, whether or not it worked.
    """

    policy = reconciler.policy
    summary = BatchSummary(source=policy.name, ledger=ledger)
    total = len(artifacts)

    for position, artifact in enumerate(artifacts, start=1):
        summary.artifacts += 1
        log.info("[%s %s/%s] %s", policy.name, position, total, artifact.name)
        try:
            jobs = extract(artifact)
        except (ArtifactError, OSError) as exc:
            log.error("Could not read %s: %s", artifact, exc)
            summary.failed += 1
            continue

        if not jobs:
            log.warning("No jobs found in %s", artifact.name)
            continue

        for job in jobs:
            outcome = reconciler.reconcile(job, summary.ledger)
            summary.ledger = outcome.ledger
            summary.record(outcome)
            if on_outcome is not None:
                on_outcome(outcome)
            if outcome.called_remote and policy.cooldown_seconds > 0:
                sleep(policy.cooldown_seconds)

    log.info(
        "%s done: %s artifacts, %s jobs, %s created, %s updated, %s skipped, %s unchanged, "
        "%s failed",
        policy.name,
        summary.artifacts,
        summary.jobs,
        summary.created,
        summary.updated,
        summary.skipped,
        summary.unchanged,
        summary.failed,
    )
    return summary
