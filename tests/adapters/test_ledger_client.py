from __future__ import annotations

import json
from collections.abc import Callable  # noqa: TC003
from dataclasses import replace

import httpx
import pytest

from millsync.adapters.http_resilience import ResilienceConfig, ResilientClient, RetryPolicy
from millsync.adapters.ledger import LedgerClient
from millsync.config.ledger import (
    DEFAULT_CREATE_PATH,
    DEFAULT_LIST_PATH,
    DEFAULT_UPDATE_PATH,
    USER_AGENT,
    LedgerConfig,
    build_ledger_resilience,
)
from millsync.domain.model import JobStatus, OrderResult
from millsync.domain.ports import (
    CreateOrderRequest,
    LedgerConnectionError,
    LedgerPayloadError,
    LedgerRejectedError,
    UpdateOrderRequest,
)
from tests.helpers.ledger import KST, kst

Handler = Callable[[httpx.Request], httpx.Response]


def _make_client(handler: Handler, retry: RetryPolicy | None = None) -> LedgerClient:
    resilience = replace(
        build_ledger_resilience("http://ledger.test/"),
        retry=retry or RetryPolicy(total=0),
    )
    config = LedgerConfig(
        list_path=DEFAULT_LIST_PATH,
        create_path=DEFAULT_CREATE_PATH,
        update_path=DEFAULT_UPDATE_PATH,
        resilience=resilience,
    )

    def factory(config: ResilienceConfig) -> ResilientClient:
        return ResilientClient(config, transport=httpx.MockTransport(handler))

    return LedgerClient(config=config, zone=KST, client_factory=factory)


def _create_request(**overrides: object) -> CreateOrderRequest:
    values: dict[str, object] = {
        "equipment_model": "DWX-52D",
        "orderer": "홍길동",
        "work_start_time": kst(2025, 7, 8, 7, 49, 56),
        "work_end_time": None,
        "total_work_time_minutes": None,
        "status": JobStatus.IN_PROGRESS,
    }
    values.update(overrides)
    return CreateOrderRequest(**values)  # type: ignore[arg-type]


def test_list_orders_reads_known_results() -> None:
    listing = {
        "success": True,
        "data": [
            {"orderer": "A", "workStartTime": "2025-07-08 09:00:00", "result": "작업중"},
            {
                "orderer": "B",
                "workStartTime": "2025-07-08 09:00:00",
                "workEndTime": "2025-07-08 10:00:00",
                "result": "실패",
                "orderCode": 77,
                "totalWorkTimeMinutes": "60",
            },
            {"orderer": "C", "workStartTime": "2025-07-08 09:00:00", "result": "실패"},
            {"orderer": "D", "workStartTime": "2025-07-08 09:00:00", "result": "보류"},
            {"workStartTime": "2025-07-08 09:00:00", "result": "완료"},
            {"orderer": "E", "workStartTime": "not a time", "result": "완료"},
        ],
    }
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=listing)

    orders = _make_client(handler).list_orders()

    assert [order.orderer for order in orders] == ["A", "B", "C"]
    assert orders[0].result is OrderResult.IN_PROGRESS
    assert orders[0].work_start_time == kst(2025, 7, 8, 9, 0, 0)
    assert orders[1].result is OrderResult.COMPLETED
    assert orders[1].order_code == "77"
    assert orders[1].total_work_time_minutes == 60
    assert orders[2].result is OrderResult.IN_PROGRESS
    assert seen[0].url.path == DEFAULT_LIST_PATH
    assert seen[0].headers["User-Agent"] == USER_AGENT


def test_list_orders_skips_items_that_are_not_objects() -> None:
    listing = {
        "success": True,
        "data": [
            None,
            "A",
            42,
            ["A", "2025-07-08 09:00:00"],
            {"orderer": "A", "workStartTime": "2025-07-08 09:00:00", "result": "작업중"},
        ],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=listing)

    orders = _make_client(handler).list_orders()

    assert [order.orderer for order in orders] == ["A"]


def test_list_orders_raises_when_ledger_reports_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "db offline"})

    with pytest.raises(LedgerRejectedError, match="db offline"):
        _make_client(handler).list_orders()


def test_create_order_sends_ledger_payload() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        assert request.method == "POST"
        assert request.url.path == DEFAULT_CREATE_PATH
        return httpx.Response(
            200,
            json={"success": True, "message": "created", "data": {"orderCode": 1234}},
        )

    order = _make_client(handler).create_order(_create_request())

    assert bodies == [
        {
            "equipmentModel": "DWX-52D",
            "orderer": "홍길동",
            "workStartTime": "2025-07-08 07:49:56",
            "workEndTime": None,
            "totalWorkTime": None,
            "result": "작업중",
        }
    ]
    assert order is not None
    assert order.order_code == "1234"
    assert order.result is OrderResult.IN_PROGRESS
    assert order.work_start_time == kst(2025, 7, 8, 7, 49, 56)
    assert order.equipment_model == "DWX-52D"


def test_create_failed_job_sends_failure_marker_and_errors() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    request = _create_request(
        work_end_time=kst(2025, 7, 8, 8, 49, 56),
        total_work_time_minutes=60,
        status=JobStatus.FAILED,
        error="E101",
    )

    order = _make_client(handler).create_order(request)

    assert bodies[0]["result"] == "실패"
    assert bodies[0]["error"] == "E101"
    assert bodies[0]["workEndTime"] == "2025-07-08 08:49:56"
    assert bodies[0]["totalWorkTime"] == 60
    assert order is None


def test_create_order_rejected_when_success_is_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "duplicate"})

    with pytest.raises(LedgerRejectedError, match="duplicate") as excinfo:
        _make_client(handler).create_order(_create_request())

    assert excinfo.value.status_code == 200


def test_update_order_sends_completion() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        assert request.url.path == DEFAULT_UPDATE_PATH
        return httpx.Response(200, json={"success": True, "data": {"orderCode": "A-1"}})

    request = UpdateOrderRequest(
        orderer="홍길동",
        work_start_time=kst(2025, 7, 8, 9, 0, 0),
        work_end_time=kst(2025, 7, 8, 9, 45, 0),
        total_work_time_minutes=45,
    )

    code = _make_client(handler).update_order(request)

    assert code == "A-1"
    assert bodies == [
        {
            "orderer": "홍길동",
            "workStartTime": "2025-07-08 09:00:00",
            "result": "완료",
            "workEndTime": "2025-07-08 09:45:00",
            "totalWorkTime": 45,
        }
    ]


def test_http_error_status_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="no such route")

    with pytest.raises(LedgerRejectedError) as excinfo:
        _make_client(handler).list_orders()

    assert excinfo.value.status_code == 404
    assert excinfo.value.body == "no such route"


def test_only_listing_is_retried_on_server_errors() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if len(methods) == 1 or request.method == "POST":
            return httpx.Response(503, text="busy")
        return httpx.Response(200, json={"success": True, "data": []})

    client = _make_client(handler, RetryPolicy(total=1, backoff_factor=0.0, backoff_jitter=0.0))

    assert client.list_orders() == []
    with pytest.raises(LedgerRejectedError):
        client.create_order(_create_request())
    assert methods == ["GET", "GET", "POST"]


def test_unreadable_body_is_a_payload_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(LedgerPayloadError):
        _make_client(handler).list_orders()


def test_connect_failure_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(LedgerConnectionError) as excinfo:
        _make_client(handler).create_order(_create_request())

    assert excinfo.value.reason == "connect"


def test_timeout_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(LedgerConnectionError) as excinfo:
        _make_client(handler).create_order(_create_request())

    assert excinfo.value.reason == "timeout"


def test_check_health_reports_order_count() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": [{}, {}]})

    report = _make_client(handler).check_health()

    assert report.ok
    assert report.status_code == 200
    assert report.order_count == 2
    assert report.error is None
    assert report.latency_ms >= 0


def test_check_health_reports_http_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, text="unauthorized")

    report = _make_client(handler).check_health()

    assert not report.ok
    assert report.status_code == 401
    assert report.error is not None
    assert "unauthorized" in report.error


def test_check_health_reports_success_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "maintenance"})

    report = _make_client(handler).check_health()

    assert not report.ok
    assert report.error == "maintenance"
