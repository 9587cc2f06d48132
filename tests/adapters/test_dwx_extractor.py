from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from millsync.adapters.artifacts import UNKNOWN_ORDERER, ArtifactError, read_dwx_jobs
from millsync.adapters.artifacts.dwx import work_time_minutes
from millsync.domain.model import JobStatus
from tests.helpers.ledger import KST, kst

if TYPE_CHECKING:
    from pathlib import Path

RECORD: dict[str, object] = {
    "ModelName": "DWX-52D",
    "SerialNumber": 9521043,
    "Jobs": [
        {
            "Name": "Crown_36",
            "StartTime": "2025-07-08T16:49:56.1314638+09:00",
            "EndTime": "2025-07-08T17:20:10.5+09:00",
            "WorkTime": "00:30:14.3",
            "JobResult": 1,
            "ErrorList": [],
            "Applications": [
                {"StlFile": "20250708_1649_홍길동a1_upper.stl", "ApplicationType": "Crown"}
            ],
            "Materials": [{"Type": "Zirconia", "Size": 14}],
        },
        {
            "Name": "Bridge",
            "StartTime": "2025-07-08T17:30:00+09:00",
            "EndTime": "",
            "Applications": [{"StlFile": "20250708_1730_김철수a2.stl"}],
        },
        {
            "StartTime": "2025-07-08T18:00:00+09:00",
            "EndTime": "2025-07-08T18:10:00+09:00",
            "WorkTime": "00:10:00",
            "JobResult": 0,
            "ErrorList": [1203, "E-55"],
        },
    ],
}


def _write(tmp_path: Path, record: dict[str, object], name: str = "job.json") -> Path:
    path = tmp_path / name
    # The machine writes a byte-order mark.
    path.write_text(json.dumps(record, ensure_ascii=False), encoding="utf-8-sig")
    return path


def test_every_job_entry_becomes_a_job(tmp_path: Path) -> None:
    jobs = read_dwx_jobs(_write(tmp_path, RECORD), zone=KST)

    assert [job.orderer for job in jobs] == ["홍길동", "김철수", UNKNOWN_ORDERER]
    assert [job.status for job in jobs] == [
        JobStatus.COMPLETED,
        JobStatus.IN_PROGRESS,
        JobStatus.FAILED,
    ]


def test_completed_job_fields(tmp_path: Path) -> None:
    job = read_dwx_jobs(_write(tmp_path, RECORD), zone=KST)[0]

    assert job.equipment_model == "DWX-52D"
    assert job.work_start_time == kst(2025, 7, 8, 16, 49, 56)
    assert job.work_end_time == kst(2025, 7, 8, 17, 20, 10)
    assert job.total_work_time_minutes == 30
    assert job.artifact == "job.json"
    assert job.attributes == {
        "serial_number": "9521043",
        "job_name": "Crown_36",
        "stl_file": "20250708_1649_홍길동a1_upper.stl",
        "application": "Crown",
        "material": "Zirconia",
    }


def test_running_job_has_no_end_or_duration(tmp_path: Path) -> None:
    job = read_dwx_jobs(_write(tmp_path, RECORD), zone=KST)[1]

    assert job.work_end_time is None
    assert job.total_work_time_minutes is None


def test_failed_job_keeps_error_codes(tmp_path: Path) -> None:
    job = read_dwx_jobs(_write(tmp_path, RECORD), zone=KST)[2]

    assert job.errors == ("1203", "E-55")
    assert job.error_text == "1203, E-55"
    assert job.total_work_time_minutes == 10


def test_record_without_jobs_is_empty(tmp_path: Path) -> None:
    assert read_dwx_jobs(_write(tmp_path, {"ModelName": "DWX-52D"}), zone=KST) == []


def test_invalid_json_is_an_artifact_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ArtifactError, match=r"broken\.json"):
        read_dwx_jobs(path, zone=KST)


def test_missing_model_name_is_an_artifact_error(tmp_path: Path) -> None:
    with pytest.raises(ArtifactError):
        read_dwx_jobs(_write(tmp_path, {"Jobs": []}), zone=KST)


def test_bad_start_time_is_an_artifact_error(tmp_path: Path) -> None:
    record = {"ModelName": "DWX-52D", "Jobs": [{"StartTime": "soon"}]}

    with pytest.raises(ArtifactError, match="Invalid job"):
        read_dwx_jobs(_write(tmp_path, record), zone=KST)


def test_missing_file_is_an_artifact_error(tmp_path: Path) -> None:
    with pytest.raises(ArtifactError):
        read_dwx_jobs(tmp_path / "gone.json", zone=KST)


@pytest.mark.parametrize(
    ("work_time", "minutes"),
    [("00:30:14.3", 30), ("01:05:59", 65), ("12:00:00", 720), ("0:0:59", 0)],
)
def test_work_time_minutes_drops_seconds(work_time: str, minutes: int) -> None:
    assert work_time_minutes(work_time) == minutes


def test_work_time_minutes_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="work time"):
        work_time_minutes("half an hour")
