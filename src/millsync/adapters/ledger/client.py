"""HTTP client for the remote order ledger API."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from millsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from millsync.config.ledger import LedgerConfig, get_ledger_config
from millsync.config.sources import SourcesConfig
from millsync.domain.ports import (
    LedgerConnectionError,
    LedgerError,
    LedgerPayloadError,
    LedgerRejectedError,
    OrderGateway,
)
from millsync.domain.reconciliation import describe_ledger_error

from .schema import ListOrdersResponse, MutationResponse
from .translator import create_payload, created_order, parse_order_listing, update_payload

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import tzinfo

    from pydantic import BaseModel

    from millsync.domain.model import Order
    from millsync.domain.ports import CreateOrderRequest, UpdateOrderRequest

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _default_zone() -> tzinfo:
    return SourcesConfig().zone


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Result of probing the ledger's list endpoint."""

    ok: bool
    latency_ms: int
    status_code: int | None = None
    order_count: int | None = None
    error: str | None = None


@dataclass(slots=True)
class LedgerClient:
    config: LedgerConfig = field(default_factory=get_ledger_config)
    zone: tzinfo = field(default_factory=_default_zone)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def list_orders(self) -> list[Order]:
        return asyncio.run(self._list_orders_async())

    def create_order(self, request: CreateOrderRequest) -> Order | None:
        return asyncio.run(self._create_order_async(request))

    def update_order(self, request: UpdateOrderRequest) -> str | None:
        return asyncio.run(self._update_order_async(request))

    def check_health(self) -> HealthReport:
        return asyncio.run(self._check_health_async())

    async def _list_orders_async(self) -> list[Order]:
        response = await self._send("GET", self.config.list_path)
        body = _decode(response, ListOrdersResponse)
        if not body.success:
            raise LedgerRejectedError(
                f"Ledger refused to list orders: {body.message or 'no message'}",
                status_code=response.status_code,
                body=response.text,
            )
        orders = parse_order_listing(body.data or [], zone=self.zone)
        log.info("Listed %s ledger orders (%s received)", len(orders), len(body.data or []))
        return orders

    async def _create_order_async(self, request: CreateOrderRequest) -> Order | None:
        payload = create_payload(request, zone=self.zone)
        log.debug("Create payload: %s", payload)
        response = await self._send("POST", self.config.create_path, json=payload)
        body = self._mutation_body(response, action="create")
        log.info(
            "Ledger created order for %s: %s",
            request.orderer,
            body.message or "OK",
        )
        return created_order(request, body.data, zone=self.zone)

    async def _update_order_async(self, request: UpdateOrderRequest) -> str | None:
        payload = update_payload(request, zone=self.zone)
        log.debug("Update payload: %s", payload)
        response = await self._send("POST", self.config.update_path, json=payload)
        body = self._mutation_body(response, action="update")
        log.info(
            "Ledger updated order for %s: %s",
            request.orderer,
            body.message or "OK",
        )
        return body.order_code

    async def _check_health_async(self) -> HealthReport:
        started = time.perf_counter()
        try:
            response = await self._send(
                "GET",
                self.config.list_path,
                timeout=self.config.health_timeout_seconds,
            )
            body = _decode(response, ListOrdersResponse)
        except LedgerError as exc:
            status_code = exc.status_code if isinstance(exc, LedgerRejectedError) else None
            return HealthReport(
                ok=False,
                latency_ms=_elapsed_ms(started),
                status_code=status_code,
                error=describe_ledger_error(exc),
            )
        return HealthReport(
            ok=body.success,
            latency_ms=_elapsed_ms(started),
            status_code=response.status_code,
            order_count=len(body.data or []),
            error=None if body.success else (body.message or "success: false"),
        )

    def _mutation_body(self, response: httpx.Response, *, action: str) -> MutationResponse:
        body = _decode(response, MutationResponse)
        if not body.success:
            raise LedgerRejectedError(
                f"Ledger refused to {action} order: {body.message or 'no message'}",
                status_code=response.status_code,
                body=response.text,
            )
        return body

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, object] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        resilience = self.config.resilience
        started = time.perf_counter()
        try:
            async with self.client_factory(resilience) as client:
                if timeout is None:
                    response = await client.request(method, path, json=json)
                else:
                    response = await client.request(method, path, json=json, timeout=timeout)
        except httpx.TimeoutException as exc:
            raise LedgerConnectionError(
                f"{method} {path} timed out after {_elapsed_ms(started)}ms",
                reason="timeout",
            ) from exc
        except httpx.ConnectError as exc:
            raise LedgerConnectionError(
                f"Could not connect to {resilience.base_url}: {exc}",
                reason="connect",
            ) from exc
        except httpx.TransportError as exc:
            raise LedgerConnectionError(f"{method} {path} failed: {exc}", reason="network") from exc

        log.debug(
            "%s %s -> %s (%sms)",
            method,
            path,
            response.status_code,
            _elapsed_ms(started),
        )
        if response.is_error:
            raise LedgerRejectedError(
                f"{method} {path} answered HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response


def _decode[ModelT: BaseModel](response: httpx.Response, model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate(response.json())
    except ValueError as exc:
        raise LedgerPayloadError(
            f"Unexpected ledger response from {response.request.url}: {exc}"
        ) from exc


if TYPE_CHECKING:
    _gateway_check: OrderGateway = LedgerClient()
