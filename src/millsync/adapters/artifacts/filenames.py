"""Recover orderer names from artifact file names and patient fields."""

from __future__ import annotations

import re
from typing import Final

UNKNOWN_ORDERER: Final = "알 수 없음"

_CUSTOMER_PATTERN = re.compile(r"\d{8}_\d{4}_(.+?)a\d")
_PATIENT_SUFFIX = re.compile(r"a\d+(\.\d+)?.*$", re.IGNORECASE)


def repair_korean_filename(text: str) -> str:
    """Undo Hangul that the milling PC decoded as EUC-JP.

    The bytes are recovered by re-encoding as EUC-JP and read again as EUC-KR.
    Text that does not survive the round trip is returned unchanged.
    """

    try:
        repaired = text.encode("euc_jp").decode("euc_kr")
    except UnicodeError:
        return text
    if "�" in repaired:
        return text
    return repaired


def extract_customer_name(stl_file: str) -> str:
    """Pull the orderer out of ``YYYYMMDD_HHMM_<name>a<digit>...`` STL names."""

    match = _CUSTOMER_PATTERN.search(stl_file)
    if match is None:
        return UNKNOWN_ORDERER
    return repair_korean_filename(match.group(1))


def strip_patient_suffix(full_name: str) -> str:
    """``"임준우a3참"`` -> ``"임준우"``; a name that would become empty is kept whole."""

    cleaned = _PATIENT_SUFFIX.sub("", full_name).strip()
    return cleaned or full_name
