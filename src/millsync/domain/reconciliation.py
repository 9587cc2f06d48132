"""Decide, per job, whether the ledger needs a new order, a completion or nothing.

The reconciler is parameterized by a ``SourcePolicy`` because the three artifact
sources disagree in small ways: which clock skews they produce, how they transmit
start times, and what a still-running job means when the ledger already has it.
The ledger cache is threaded through every call as a value; a failed remote call
hands back the cache it was given.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import timedelta
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from .matching import EIGHT_HOURS_MS, NINE_HOURS_MS, ONE_HOUR_MS, OrderMatcher
from .model import JobStatus, OrderResult
from .ports import CreateOrderRequest, LedgerError, LedgerRejectedError, UpdateOrderRequest
from .timestamps import DWX_TRANSMIT_SHIFT, apply_shift

if TYPE_CHECKING:
    from datetime import datetime, tzinfo

    from .ledger import LedgerCache
    from .matching import LedgerMatch
    from .model import Job, Order
    from .ports import OrderGateway

log = getLogger(__name__)


class ReconcileAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
    NOOP = "noop"


class StillRunningAction(StrEnum):
    """What to do when a running job matches an order that is still in progress."""

    SKIP = "skip"
    NOOP = "noop"


@dataclass(frozen=True, slots=True)
class SourcePolicy:
    name: str
    skew_allowlist_ms: frozenset[int] = field(default_factory=frozenset)
    still_running: StillRunningAction = StillRunningAction.SKIP
    transmit_shift: timedelta = timedelta(0)
    cooldown_seconds: float = 0.5


DWX_POLICY = SourcePolicy(
    name="dwx",
    skew_allowlist_ms=frozenset({ONE_HOUR_MS, NINE_HOURS_MS}),
    still_running=StillRunningAction.NOOP,
    transmit_shift=DWX_TRANSMIT_SHIFT,
    cooldown_seconds=0.5,
)
OD_LOG_POLICY = SourcePolicy(
    name="od-log",
    skew_allowlist_ms=frozenset({ONE_HOUR_MS, EIGHT_HOURS_MS, NINE_HOURS_MS}),
    still_running=StillRunningAction.SKIP,
    cooldown_seconds=0.3,
)
XML_POLICY = SourcePolicy(
    name="xml",
    still_running=StillRunningAction.NOOP,
    cooldown_seconds=0.5,
)


def decide(
    status: JobStatus,
    matched: Order | None,
    *,
    still_running: StillRunningAction,
) -> ReconcileAction:
    if matched is None:
        return ReconcileAction.CREATE
    if matched.result is OrderResult.COMPLETED:
        return ReconcileAction.SKIP
    if status is JobStatus.IN_PROGRESS:
        return ReconcileAction(still_running.value)
    return ReconcileAction.UPDATE


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    job: Job
    action: ReconcileAction
    ledger: LedgerCache
    order: Order | None = None
    error: LedgerError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def called_remote(self) -> bool:
        return self.action in {ReconcileAction.CREATE, ReconcileAction.UPDATE}


def describe_ledger_error(exc: LedgerError) -> str:
    if isinstance(exc, LedgerRejectedError):
        return f"{exc} (status={exc.status_code}, body={exc.body or '<empty>'})"
    return str(exc)


@dataclass(slots=True)
class Reconciler:
    gateway: OrderGateway
    policy: SourcePolicy
    zone: tzinfo
    matcher: OrderMatcher = field(init=False)

    def __post_init__(self) -> None:
        self.matcher = OrderMatcher(skew_allowlist_ms=self.policy.skew_allowlist_ms)

    def transmitted(self, instant: datetime) -> datetime:
        return apply_shift(instant, zone=self.zone, shift=self.policy.transmit_shift)

    def reconcile(self, job: Job, ledger: LedgerCache) -> ReconcileOutcome:
        start = self.transmitted(job.work_start_time)
        match = self.matcher.find(job.orderer, start, ledger)
        action = decide(
            job.status,
            match.order if match else None,
            still_running=self.policy.still_running,
        )
        log.debug(
            "%s %s start=%s status=%s -> %s (cached orders: %s)",
            self.policy.name,
            job.orderer,
            start,
            job.status,
            action,
            len(ledger),
        )

        if match is None:
            return self._create(job, start, ledger)
        if action is ReconcileAction.UPDATE:
            return self._update(job, start, match, ledger)

        if action is ReconcileAction.SKIP:
            log.info(
                "Skipping %s (%s): ledger order %s is %s",
                job.orderer,
                start,
                match.order.order_code or "N/A",
                match.order.result,
            )
        else:
            log.info(
                "No change for %s (%s): still running, ledger order %s in progress",
                job.orderer,
                start,
                match.order.order_code or "N/A",
            )
        return ReconcileOutcome(job=job, action=action, ledger=ledger, order=match.order)

    def _create(self, job: Job, start: datetime, ledger: LedgerCache) -> ReconcileOutcome:
        end = self.transmitted(job.work_end_time) if job.work_end_time else None
        request = CreateOrderRequest(
            equipment_model=job.equipment_model,
            orderer=job.orderer,
            work_start_time=start,
            work_end_time=end,
            total_work_time_minutes=job.total_work_time_minutes,
            status=job.status,
            error=job.error_text,
        )
        try:
            created = self.gateway.create_order(request)
        except LedgerError as exc:
            log.error("Creating order for %s failed: %s", job.orderer, describe_ledger_error(exc))
            return ReconcileOutcome(
                job=job, action=ReconcileAction.CREATE, ledger=ledger, error=exc
            )

        if created is None:
            log.warning("Ledger created %s without echoing the order; cache unchanged", job.orderer)
            return ReconcileOutcome(job=job, action=ReconcileAction.CREATE, ledger=ledger)

        updated_ledger = ledger.with_created(created)
        log.info(
            "Created order %s for %s (%s); cached orders %s -> %s",
            created.order_code or "N/A",
            job.orderer,
            created.result,
            len(ledger),
            len(updated_ledger),
        )
        return ReconcileOutcome(
            job=job,
            action=ReconcileAction.CREATE,
            ledger=updated_ledger,
            order=created,
        )

    def _update(
        self,
        job: Job,
        start: datetime,
        match: LedgerMatch,
        ledger: LedgerCache,
    ) -> ReconcileOutcome:
        if job.work_end_time is None:
            raise ValueError(f"Cannot complete order for running job {job.orderer!r}")
        end = self.transmitted(job.work_end_time)
        request = UpdateOrderRequest(
            orderer=job.orderer,
            work_start_time=start,
            work_end_time=end,
            total_work_time_minutes=job.total_work_time_minutes,
            error=job.error_text,
        )
        try:
            order_code = self.gateway.update_order(request)
        except LedgerError as exc:
            log.error("Completing order for %s failed: %s", job.orderer, describe_ledger_error(exc))
            return ReconcileOutcome(
                job=job, action=ReconcileAction.UPDATE, ledger=ledger, error=exc
            )

        completed = replace(
            match.order,
            result=OrderResult.COMPLETED,
            work_end_time=end,
            total_work_time_minutes=job.total_work_time_minutes,
            error=job.error_text or match.order.error,
            order_code=match.order.order_code or order_code,
        )
        log.info(
            "Completed order %s for %s (in progress -> completed)",
            completed.order_code or "N/A",
            job.orderer,
        )
        return ReconcileOutcome(
            job=job,
            action=ReconcileAction.UPDATE,
            ledger=ledger.with_replaced(match.index, completed),
            order=completed,
        )
