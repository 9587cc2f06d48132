"""Extract jobs from XML order folders written by the dental CAD system.

Every order lives in its own folder holding ``<folder>.xml``. The document nests
property tables under ``DentalContainer/Object``; the ``OrderList`` table names the
patient and the ``ModelElementList`` table carries the creation date. The folder's
modification time is the closest thing the machine records to a finish time.
"""

from __future__ import annotations

import math
import xml.etree.ElementTree as ET
from logging import getLogger
from typing import TYPE_CHECKING, Final

from millsync.domain.model import Job, JobStatus
from millsync.domain.ports import ArtifactError
from millsync.domain.timestamps import from_epoch_seconds, from_filesystem, minutes_between

from .filenames import strip_patient_suffix

if TYPE_CHECKING:
    from datetime import datetime, tzinfo
    from pathlib import Path

log = getLogger(__name__)

EQUIPMENT_MODEL: Final = "XML-System"


def _property_table(main: ET.Element, name: str) -> dict[str, str]:
    for child in main.findall("Object"):
        if child.get("name") != name:
            continue
        item = child.find("List/Object")
        if item is None:
            return {}
        return {
            prop.get("name", ""): prop.get("value", "")
            for prop in item.findall("Property")
            if prop.get("value")
        }
    return {}


def _start_time(order: dict[str, str], model: dict[str, str], *, zone: tzinfo) -> datetime:
    candidates = (
        ("CreateDate", model.get("CreateDate")),
        ("CacheMaxScanDate", order.get("CacheMaxScanDate")),
    )
    for name, raw in candidates:
        try:
            start = from_epoch_seconds(raw, zone=zone)
        except ValueError as exc:
            log.warning("Ignoring %s %r: %s", name, raw, exc)
            continue
        if start is not None:
            return start
    raise ArtifactError("Order has no usable CreateDate or CacheMaxScanDate")


def floor_minutes(start: datetime, end: datetime) -> int | None:
    """Whole elapsed minutes, or ``None`` when the span is not positive."""

    minutes = math.floor(minutes_between(start, end))
    return minutes if minutes > 0 else None


def parse_order_document(root: ET.Element, *, folder: Path, zone: tzinfo) -> Job:
    if root.tag != "DentalContainer":
        raise ArtifactError(f"Unexpected root element <{root.tag}>")
    main = root.find("Object")
    if main is None:
        raise ArtifactError("Document has no DentalContainer/Object element")

    order = _property_table(main, "OrderList")
    if not order:
        raise ArtifactError("Document has no OrderList entry")
    model = _property_table(main, "ModelElementList")

    patient = order.get("Patient_LastName")
    if not patient:
        raise ArtifactError("OrderList entry has no Patient_LastName")

    start = _start_time(order, model, zone=zone)
    end = from_filesystem(folder.stat().st_mtime, zone=zone)

    attributes = {"folder": folder.name}
    for key, label in (("Items", "items"), ("CacheMaterialName", "material")):
        value = order.get(key) or model.get(key)
        if value:
            attributes[label] = value

    return Job(
        orderer=strip_patient_suffix(patient),
        equipment_model=EQUIPMENT_MODEL,
        work_start_time=start,
        status=JobStatus.COMPLETED,
        work_end_time=end,
        total_work_time_minutes=floor_minutes(start, end),
        artifact=folder.name,
        attributes=attributes,
    )


def read_xml_order_jobs(folder: Path, *, zone: tzinfo) -> list[Job]:
    """Read ``<folder>/<folder>.xml``; an order folder always yields one job."""

    document = folder / f"{folder.name}.xml"
    if not document.is_file():
        raise ArtifactError(f"Missing order document {document.name} in {folder}")
    try:
        tree = ET.parse(document)
    except ET.ParseError as exc:
        raise ArtifactError(f"Invalid XML in {document.name}: {exc}") from exc
    except OSError as exc:
        raise ArtifactError(f"Cannot read {document.name}: {exc}") from exc

    job = parse_order_document(tree.getroot(), folder=folder, zone=zone)
    log.debug("%s: order for %s", folder.name, job.orderer)
    return [job]
