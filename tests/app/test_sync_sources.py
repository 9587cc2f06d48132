from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from millsync.adapters.ledger import HealthReport
from millsync.app import ALL_SOURCES, Source, check_ledger_health, sync_sources
from millsync.config import ConfigurationError, SourcesConfig
from millsync.domain.model import OrderResult
from tests.helpers.ledger import KST, FakeGateway, kst, make_order

if TYPE_CHECKING:
    from pathlib import Path

OD_LOG = """\
FIle Open :20250708_1630_crown.nc
Auto START : (2025 / 07 / 08)- 16 : 31 : 02
WORK END : (2025 / 07 / 08)- 16 : 58 : 40
FIle Open :bridge.nc
Auto START : (2025 / 07 / 08)- 17 : 00 : 00
"""

DWX_RECORD = {
    "ModelName": "DWX-52D",
    "Jobs": [
        {
            "StartTime": "2025-07-08T16:49:56+09:00",
            "EndTime": "2025-07-08T17:20:10+09:00",
            "WorkTime": "00:30:14",
            "JobResult": 1,
            "Applications": [{"StlFile": "20250708_1649_홍길동a1.stl"}],
        }
    ],
}

XML_ORDER = (
    '<DentalContainer><Object name="Main"><Object name="OrderList"><List><Object>'
    '<Property name="Patient_LastName" value="임준우a3"/>'
    '<Property name="CacheMaxScanDate" value="1751960996"/>'
    "</Object></List></Object></Object></DentalContainer>"
)


def _no_sleep(_seconds: float) -> None:
    return None


def _sources(tmp_path: Path) -> SourcesConfig:
    dwx_dir = tmp_path / "dwx"
    od_dir = tmp_path / "od"
    xml_dir = tmp_path / "xml"
    for directory in (dwx_dir, od_dir, xml_dir):
        directory.mkdir()

    (dwx_dir / "record.json").write_text(json.dumps(DWX_RECORD), encoding="utf-8")
    (od_dir / "20250708").write_text(OD_LOG, encoding="utf-8")
    order = xml_dir / "order-1"
    order.mkdir()
    (order / "order-1.xml").write_text(XML_ORDER, encoding="utf-8")

    return SourcesConfig(dwx_dir=dwx_dir, od_log_dir=od_dir, xml_dir=xml_dir, zone=KST)


def test_od_log_sync_updates_and_creates(tmp_path: Path) -> None:
    gateway = FakeGateway(
        listed=[make_order("20250708_1630_crown.nc", start=kst(2025, 7, 8, 16, 31, 2))]
    )

    summary = sync_sources(
        [Source.OD_LOG],
        gateway=gateway,
        config=_sources(tmp_path),
        sleep=_no_sleep,
    )

    batch = summary.batches[0]
    assert batch.source == "od-log"
    assert (batch.updated, batch.created, batch.failed) == (1, 1, 0)
    assert gateway.created[0].orderer == "bridge.nc"
    assert len(summary.ledger) == 2
    crown = next(order for order in summary.ledger if order.orderer.endswith("crown.nc"))
    assert crown.result is OrderResult.COMPLETED


def test_all_sources_share_one_listing(tmp_path: Path) -> None:
    gateway = FakeGateway()

    summary = sync_sources(ALL_SOURCES, gateway=gateway, config=_sources(tmp_path), sleep=_no_sleep)

    assert gateway.list_calls == 1
    assert [batch.source for batch in summary.batches] == ["dwx", "od-log", "xml"]
    assert [request.orderer for request in gateway.created] == [
        "홍길동",
        "20250708_1630_crown.nc",
        "bridge.nc",
        "임준우",
    ]
    assert len(summary.ledger) == 4
    assert summary.failed == 0


def test_dwx_orders_are_sent_nine_hours_earlier(tmp_path: Path) -> None:
    gateway = FakeGateway()

    sync_sources([Source.DWX], gateway=gateway, config=_sources(tmp_path), sleep=_no_sleep)

    assert gateway.created[0].work_start_time == kst(2025, 7, 8, 7, 49, 56)
    assert gateway.created[0].work_end_time == kst(2025, 7, 8, 8, 20, 10)


def test_od_limit_restricts_files(tmp_path: Path) -> None:
    config = _sources(tmp_path)
    assert config.od_log_dir is not None
    (config.od_log_dir / "20250707").write_text(OD_LOG, encoding="utf-8")
    gateway = FakeGateway()

    summary = sync_sources(
        [Source.OD_LOG],
        gateway=gateway,
        config=config,
        od_limit=1,
        sleep=_no_sleep,
    )

    assert summary.batches[0].artifacts == 1


def test_broken_artifact_is_counted(tmp_path: Path) -> None:
    config = _sources(tmp_path)
    assert config.xml_dir is not None
    (config.xml_dir / "order-0").mkdir()

    summary = sync_sources([Source.XML], gateway=FakeGateway(), config=config, sleep=_no_sleep)

    assert summary.failed == 1
    assert summary.batches[0].created == 1


def test_unconfigured_source_fails_before_listing(tmp_path: Path) -> None:
    gateway = FakeGateway()
    config = SourcesConfig(od_log_dir=tmp_path, zone=KST)

    with pytest.raises(ConfigurationError, match="dwx"):
        sync_sources(ALL_SOURCES, gateway=gateway, config=config, sleep=_no_sleep)

    assert gateway.list_calls == 0


def test_check_ledger_health_passes_report_through() -> None:
    class _Client:
        def check_health(self) -> HealthReport:
            return HealthReport(ok=False, latency_ms=12, error="connection refused")

    report = check_ledger_health(client=_Client())  # type: ignore[arg-type]

    assert not report.ok
    assert report.error == "connection refused"


def test_order_with_out_of_range_dates_is_counted(tmp_path: Path) -> None:
    config = _sources(tmp_path)
    assert config.xml_dir is not None
    broken = config.xml_dir / "order-0"
    broken.mkdir()
    (broken / "order-0.xml").write_text(
        XML_ORDER.replace("1751960996", "99999999999999999999"), encoding="utf-8"
    )
    gateway = FakeGateway()

    summary = sync_sources([Source.XML], gateway=gateway, config=config, sleep=_no_sleep)

    assert summary.failed == 1
    assert summary.batches[0].created == 1
    assert [request.orderer for request in gateway.created] == ["임준우"]
