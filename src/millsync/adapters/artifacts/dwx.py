"""Extract jobs from Roland DWX-52D JSON job records."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from millsync.domain.model import Job, resolve_job_status
from millsync.domain.ports import ArtifactError
from millsync.domain.timestamps import parse_local

from .filenames import UNKNOWN_ORDERER, extract_customer_name, repair_korean_filename

if TYPE_CHECKING:
    from datetime import tzinfo
    from pathlib import Path

log = getLogger(__name__)

SUCCESS_RESULT = 1

_WORK_TIME = re.compile(r"^\s*(\d+):(\d{1,2}):(\d{1,2})(?:\.\d+)?\s*$")


class DwxBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DwxApplication(DwxBaseModel):
    stl_file: str = Field(default="", alias="StlFile")
    application_type: str | None = Field(default=None, alias="ApplicationType")
    count: int | None = Field(default=None, alias="Count")


class DwxMaterial(DwxBaseModel):
    type: str | None = Field(default=None, alias="Type")
    shape: str | None = Field(default=None, alias="Shape")
    size: str | float | None = Field(default=None, alias="Size")
    milling_area_percent: float | None = Field(default=None, alias="MillingAreaPercent")


class DwxBur(DwxBaseModel):
    stocker_number: int | None = Field(default=None, alias="StockerNumber")
    work_time: str | None = Field(default=None, alias="WorkTime")


class DwxJob(DwxBaseModel):
    name: str | None = Field(default=None, alias="Name")
    start_time: str = Field(alias="StartTime")
    end_time: str | None = Field(default=None, alias="EndTime")
    work_time: str | None = Field(default=None, alias="WorkTime")
    job_result: int | None = Field(default=None, alias="JobResult")
    error_list: list[str] = Field(default_factory=list, alias="ErrorList")
    applications: list[DwxApplication] = Field(default_factory=list, alias="Applications")
    materials: list[DwxMaterial] = Field(default_factory=list, alias="Materials")
    burs: list[DwxBur] = Field(default_factory=list, alias="Burs")

    @field_validator("end_time", mode="before")
    @classmethod
    def _blank_end(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("error_list", mode="before")
    @classmethod
    def _stringify_errors(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class DwxRecord(DwxBaseModel):
    model_name: str = Field(alias="ModelName")
    serial_number: str | None = Field(default=None, alias="SerialNumber")
    jobs: list[DwxJob] = Field(default_factory=list, alias="Jobs")

    @field_validator("serial_number", mode="before")
    @classmethod
    def _stringify_serial(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


def work_time_minutes(work_time: str) -> int:
    """``"HH:MM:SS[.f]"`` -> whole minutes; seconds are dropped."""

    match = _WORK_TIME.match(work_time)
    if match is None:
        raise ValueError(f"Unrecognised work time: {work_time!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def _attributes(record: DwxRecord, job: DwxJob) -> dict[str, str]:
    attributes: dict[str, str] = {}
    if record.serial_number:
        attributes["serial_number"] = record.serial_number
    if job.name:
        attributes["job_name"] = job.name
    if job.applications:
        application = job.applications[0]
        if application.stl_file:
            attributes["stl_file"] = repair_korean_filename(application.stl_file)
        if application.application_type:
            attributes["application"] = application.application_type
    if job.materials and job.materials[0].type:
        attributes["material"] = job.materials[0].type
    return attributes


def job_from_record(record: DwxRecord, job: DwxJob, *, zone: tzinfo, artifact: str) -> Job:
    orderer = (
        extract_customer_name(job.applications[0].stl_file)
        if job.applications
        else UNKNOWN_ORDERER
    )
    start = parse_local(job.start_time, zone=zone)
    end = parse_local(job.end_time, zone=zone) if job.end_time else None
    total = work_time_minutes(job.work_time) if end is not None and job.work_time else None
    return Job(
        orderer=orderer,
        equipment_model=record.model_name,
        work_start_time=start,
        status=resolve_job_status(
            finished=end is not None,
            succeeded=job.job_result == SUCCESS_RESULT,
        ),
        work_end_time=end,
        total_work_time_minutes=total,
        errors=tuple(job.error_list),
        artifact=artifact,
        attributes=_attributes(record, job),
    )


def read_dwx_jobs(path: Path, *, zone: tzinfo) -> list[Job]:
    """Read one DWX-52D record; every entry of ``Jobs`` becomes a job."""

    try:
        raw = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise ArtifactError(f"Cannot read {path.name}: {exc}") from exc
    try:
        record = DwxRecord.model_validate_json(raw)
    except ValidationError as exc:
        raise ArtifactError(f"Invalid DWX-52D record {path.name}: {exc}") from exc

    jobs: list[Job] = []
    for job in record.jobs:
        try:
            jobs.append(job_from_record(record, job, zone=zone, artifact=path.name))
        except ValueError as exc:
            raise ArtifactError(f"Invalid job in {path.name}: {exc}") from exc
    log.debug("%s: %s jobs", path.name, len(jobs))
    return jobs
