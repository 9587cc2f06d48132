"""Translate between ledger payloads and domain orders.

The ledger speaks Korean result markers and wall-clock timestamp strings. Requests
carry instants that were already re-expressed the way their source transmits
them, so formatting here never shifts again.
"""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from millsync.domain.model import JobStatus, Order, OrderResult
from millsync.domain.timestamps import format_for_ledger, parse_ledger

from .schema import CreateOrderPayload, OrderPayload, UpdateOrderPayload

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import tzinfo

    from millsync.domain.ports import CreateOrderRequest, UpdateOrderRequest

log = getLogger(__name__)

RESULT_IN_PROGRESS: Final = "작업중"
RESULT_COMPLETED: Final = "완료"
RESULT_FAILED: Final = "실패"

_STATUS_MARKERS: Final = {
    JobStatus.IN_PROGRESS: RESULT_IN_PROGRESS,
    JobStatus.COMPLETED: RESULT_COMPLETED,
    JobStatus.FAILED: RESULT_FAILED,
}


def result_marker(status: JobStatus) -> str:
    return _STATUS_MARKERS[status]


def _order_result(payload: OrderPayload) -> OrderResult | None:
    marker = payload.result.strip()
    if marker == RESULT_IN_PROGRESS:
        return OrderResult.IN_PROGRESS
    if marker == RESULT_COMPLETED:
        return OrderResult.COMPLETED
    if marker == RESULT_FAILED:
        # A failed run that reached its end is as final as a completed one.
        return OrderResult.COMPLETED if payload.work_end_time else OrderResult.IN_PROGRESS
    return None


def order_from_payload(payload: OrderPayload, *, zone: tzinfo) -> Order | None:
    """Build a cached order, or ``None`` when the payload cannot take part in matching."""

    result = _order_result(payload)
    if result is None:
        log.warning("Ignoring ledger order %s with result %r", payload.orderer, payload.result)
        return None
    try:
        start = parse_ledger(payload.work_start_time, zone=zone)
        end = parse_ledger(payload.work_end_time, zone=zone) if payload.work_end_time else None
    except ValueError as exc:
        log.warning("Ignoring ledger order %s: %s", payload.orderer, exc)
        return None
    return Order(
        orderer=payload.orderer,
        work_start_time=start,
        result=result,
        order_code=payload.order_code,
        work_end_time=end,
        total_work_time_minutes=payload.total_work_time,
        error=payload.error,
        equipment_model=payload.equipment_model,
    )


def parse_order_listing(items: Iterable[object], *, zone: tzinfo) -> list[Order]:
    orders: list[Order] = []
    for item in items:
        if not isinstance(item, Mapping):
            log.warning("Ignoring ledger order that is not an object: %r", item)
            continue
        try:
            payload = OrderPayload.model_validate(item)
        except ValidationError as exc:
            log.warning("Ignoring malformed ledger order: %s", exc.errors(include_url=False))
            continue
        order = order_from_payload(payload, zone=zone)
        if order is not None:
            orders.append(order)
    return orders


def create_payload(request: CreateOrderRequest, *, zone: tzinfo) -> dict[str, object]:
    payload = CreateOrderPayload(
        equipment_model=request.equipment_model,
        orderer=request.orderer,
        work_start_time=format_for_ledger(request.work_start_time, zone=zone),
        work_end_time=(
            format_for_ledger(request.work_end_time, zone=zone) if request.work_end_time else None
        ),
        total_work_time=request.total_work_time_minutes,
        result=result_marker(request.status),
        error=request.error,
    )
    data = payload.model_dump(by_alias=True)
    if data["error"] is None:
        del data["error"]
    return data


def update_payload(request: UpdateOrderRequest, *, zone: tzinfo) -> dict[str, object]:
    payload = UpdateOrderPayload(
        orderer=request.orderer,
        work_start_time=format_for_ledger(request.work_start_time, zone=zone),
        result=RESULT_COMPLETED,
        work_end_time=format_for_ledger(request.work_end_time, zone=zone),
        total_work_time=request.total_work_time_minutes,
        error=request.error,
    )
    data = payload.model_dump(by_alias=True)
    if data["error"] is None:
        del data["error"]
    return data


def created_order(
    request: CreateOrderRequest,
    echoed: Mapping[str, object] | None,
    *,
    zone: tzinfo,
) -> Order | None:
    """Merge the ledger's echo of a new order over what was submitted."""

    if echoed is None:
        return None
    merged = create_payload(request, zone=zone)
    merged.update({key: value for key, value in echoed.items() if value is not None})
    try:
        payload = OrderPayload.model_validate(merged)
    except ValidationError as exc:
        log.warning("Ledger echoed an unreadable order for %s: %s", request.orderer, exc)
        return None
    return order_from_payload(payload, zone=zone)
