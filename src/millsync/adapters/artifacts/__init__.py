"""Machine artifact readers: DWX-52D JSON, od-log and XML order folders."""

from __future__ import annotations

from millsync.domain.ports import ArtifactError, SourceDirectoryError

from .dwx import DwxRecord, read_dwx_jobs, work_time_minutes
from .filenames import (
    UNKNOWN_ORDERER,
    extract_customer_name,
    repair_korean_filename,
    strip_patient_suffix,
)
from .odlog import parse_od_log_lines, read_od_log_jobs
from .scan import scan_dwx_files, scan_od_log_files, scan_xml_folders
from .xml_order import parse_order_document, read_xml_order_jobs

__all__ = [
    "UNKNOWN_ORDERER",
    "ArtifactError",
    "DwxRecord",
    "SourceDirectoryError",
    "extract_customer_name",
    "parse_od_log_lines",
    "parse_order_document",
    "read_dwx_jobs",
    "read_od_log_jobs",
    "read_xml_order_jobs",
    "repair_korean_filename",
    "scan_dwx_files",
    "scan_od_log_files",
    "scan_xml_folders",
    "strip_patient_suffix",
    "work_time_minutes",
]
