"""Normalize the timestamp encodings found in machine artifacts and ledger payloads.

Every function returns a timezone-aware ``datetime``. Machine artifacts are already
written in the equipment's local time, so naive values and values carrying a
spurious offset suffix are both read as wall-clock time in the equipment zone.
Ledger values honour an explicit offset when they carry one.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, tzinfo

LEDGER_FORMAT = "%Y-%m-%d %H:%M:%S"

# Fixed correction for the DWX-52D JSON encoding; not a general timezone conversion.
DWX_TRANSMIT_SHIFT = timedelta(hours=-9)

_LOCAL_PATTERN = re.compile(
    r"^\s*(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})"
    r"[T ](?P<hour>\d{1,2}):(?P<minute>\d{1,2}):(?P<second>\d{1,2})(?:\.\d+)?"
    r"(?P<offset>Z|[+-]\d{2}:?\d{2})?\s*$"
)
_OD_LOG_DATE = re.compile(r"^\s*(\d{4})\s*/\s*(\d{1,2})\s*/\s*(\d{1,2})\s*$")
_OD_LOG_TIME = re.compile(r"^\s*(\d{1,2})\s*:\s*(\d{1,2})\s*:\s*(\d{1,2})\s*$")


def _match_local(value: str) -> re.Match[str]:
    match = _LOCAL_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Unrecognised timestamp: {value!r}")
    return match


def _wall_clock(match: re.Match[str], zone: tzinfo) -> datetime:
    return datetime(
        int(match["year"]),
        int(match["month"]),
        int(match["day"]),
        int(match["hour"]),
        int(match["minute"]),
        int(match["second"]),
        tzinfo=zone,
    )


def parse_local(value: str, *, zone: tzinfo) -> datetime:
    """Parse a machine-local timestamp, discarding any offset suffix.

    ``"2025-07-08T16:49:56.1314638+09:00"`` and ``"2025-07-08 16:49:56"`` both
    yield 16:49:56 in ``zone``; fractional seconds are truncated.
    """

    return _wall_clock(_match_local(value), zone)


def parse_ledger(value: str, *, zone: tzinfo) -> datetime:
    """Parse a ledger timestamp, honouring ``Z`` or an explicit offset when present."""

    match = _match_local(value)
    offset = match["offset"]
    if offset is None:
        return _wall_clock(match, zone)
    iso = value.strip().replace(" ", "T", 1)
    if offset == "Z":
        iso = iso[:-1] + "+00:00"
    return datetime.fromisoformat(iso).astimezone(zone).replace(microsecond=0)


def parse_od_log(date_part: str, time_part: str, *, zone: tzinfo) -> datetime:
    """Parse the split od-log form ``"2019 / 03 / 27"`` + ``"09 : 14 : 36"``."""

    date_match = _OD_LOG_DATE.match(date_part)
    time_match = _OD_LOG_TIME.match(time_part)
    if date_match is None or time_match is None:
        raise ValueError(f"Unrecognised od-log timestamp: {date_part!r} {time_part!r}")
    year, month, day = (int(group) for group in date_match.groups())
    hour, minute, second = (int(group) for group in time_match.groups())
    return datetime(year, month, day, hour, minute, second, tzinfo=zone)


def from_epoch_seconds(value: int | str | None, *, zone: tzinfo) -> datetime | None:
    """Convert Unix epoch seconds; missing, blank and zero values mean absent."""

    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    seconds = int(value)
    if seconds == 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=zone)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"Epoch timestamp out of range: {value!r}") from exc


def from_filesystem(timestamp: float, *, zone: tzinfo) -> datetime:
    """Convert a filesystem timestamp, dropping sub-second precision."""

    return datetime.fromtimestamp(int(timestamp), tz=zone)


def apply_shift(instant: datetime, *, zone: tzinfo, shift: timedelta) -> datetime:
    """Re-express ``instant`` as the value a source transmits to the ledger."""

    return instant.astimezone(zone) + shift


def format_for_ledger(
    instant: datetime,
    *,
    zone: tzinfo,
    shift: timedelta = timedelta(0),
) -> str:
    """Render ``instant`` as ledger wall-clock text after applying ``shift`` once."""

    return apply_shift(instant, zone=zone, shift=shift).strftime(LEDGER_FORMAT)


def difference_ms(first: datetime, second: datetime) -> int:
    """Absolute distance between two instants in whole milliseconds."""

    delta = first.astimezone(UTC) - second.astimezone(UTC)
    return abs(delta) // timedelta(milliseconds=1)


def minutes_between(start: datetime, end: datetime) -> float:
    return (end.astimezone(UTC) - start.astimezone(UTC)) / timedelta(minutes=1)
