"""Order ledger adapter package."""

from __future__ import annotations

from millsync.domain.ports import (
    LedgerConnectionError,
    LedgerError,
    LedgerPayloadError,
    LedgerRejectedError,
)

from .client import HealthReport, LedgerClient
from .schema import ListOrdersResponse, MutationResponse, OrderPayload
from .translator import (
    RESULT_COMPLETED,
    RESULT_FAILED,
    RESULT_IN_PROGRESS,
    create_payload,
    order_from_payload,
    parse_order_listing,
    update_payload,
)

__all__ = [
    "RESULT_COMPLETED",
    "RESULT_FAILED",
    "RESULT_IN_PROGRESS",
    "HealthReport",
    "LedgerClient",
    "LedgerConnectionError",
    "LedgerError",
    "LedgerPayloadError",
    "LedgerRejectedError",
    "ListOrdersResponse",
    "MutationResponse",
    "OrderPayload",
    "create_payload",
    "order_from_payload",
    "parse_order_listing",
    "update_payload",
]
