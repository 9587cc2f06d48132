"""Port definitions for the remote order ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from pathlib import Path

    from .model import Job, JobStatus, Order

type ConnectionFailure = Literal["timeout", "connect", "network"]


class LedgerError(RuntimeError):
    """Raised when a ledger operation did not complete."""


class LedgerConnectionError(LedgerError):
    """The ledger could not be reached (refused, DNS failure, timeout)."""

    def __init__(self, message: str, *, reason: ConnectionFailure) -> None:
        super().__init__(message)
        self.reason = reason


class LedgerRejectedError(LedgerError):
    """The ledger answered but refused the request."""

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class LedgerPayloadError(LedgerError):
    """The ledger answered with a body that could not be understood."""


class ArtifactError(ValueError):
    """Raised when a single artifact cannot be read or parsed."""


class SourceDirectoryError(RuntimeError):
    """Raised when an artifact directory cannot be read at all."""


@runtime_checkable
class JobExtractor(Protocol):
    """Turn one artifact into jobs in a stable order; failures raise ``ArtifactError``."""

    def __call__(self, artifact: Path) -> Sequence[Job]: ...


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateOrderRequest:
    """A new order, timestamps already re-expressed as the source transmits them."""

    equipment_model: str
    orderer: str
    work_start_time: datetime
    work_end_time: datetime | None
    total_work_time_minutes: int | None
    status: JobStatus
    error: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateOrderRequest:
    """Completion of an in-progress order, addressed by orderer and start time."""

    orderer: str
    work_start_time: datetime
    work_end_time: datetime
    total_work_time_minutes: int | None
    error: str | None = None


@runtime_checkable
class OrderGateway(Protocol):
    """Remote list/create/update operations; failures raise ``LedgerError``."""

    def list_orders(self) -> list[Order]: ...

    def create_order(self, request: CreateOrderRequest) -> Order | None:
        """Create an order and return it as echoed by the ledger, if it was echoed."""
        ...

    def update_order(self, request: UpdateOrderRequest) -> str | None:
        """Complete an order and return its order code, if the ledger sent one."""
        ...


__all__ = [
    "ArtifactError",
    "CreateOrderRequest",
    "JobExtractor",
    "LedgerConnectionError",
    "LedgerError",
    "LedgerPayloadError",
    "LedgerRejectedError",
    "OrderGateway",
    "SourceDirectoryError",
    "UpdateOrderRequest",
]
