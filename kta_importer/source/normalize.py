from __future__ import annotations

import re
import warnings
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..models.member_record import Gender

"""Field normalizers for raw CSV values.

All functions here are total: unrecognised or unparseable input degrades to
None instead of raising, so one odd cell never costs a whole row.
"""

__all__ = [
    "nullable_str",
    "normalize_gender",
    "parse_date",
    "parse_datetime",
]

# Laki-laki / Perempuan, matched on the first letter only
_GENDER_BY_INITIAL = {
    "l": Gender.MALE,
    "p": Gender.FEMALE,
}

# Indonesian month names and common abbreviations -> English for the parser
_MONTHS_ID = {
    "januari": "January",
    "februari": "February",
    "pebruari": "February",
    "maret": "March",
    "mei": "May",
    "juni": "June",
    "juli": "July",
    "agustus": "August",
    "agu": "Aug",
    "agt": "Aug",
    "oktober": "October",
    "okt": "Oct",
    "desember": "December",
    "des": "Dec",
}

_YEAR_FIRST = re.compile(r"^\d{4}[-/.]\d{1,2}[-/.]\d{1,2}")
_WORD = re.compile(r"[A-Za-z]+")


def nullable_str(raw: Any) -> str | None:
    """Trim a raw cell; None / NaN padding / blank -> None."""
    if raw is None:
        return None
    if not isinstance(raw, str):
        if pd.isna(raw):
            return None
        raw = str(raw)
    text = raw.strip()
    return text or None


def normalize_gender(raw: Any) -> Gender | None:
    text = nullable_str(raw)
    if text is None:
        return None
    return _GENDER_BY_INITIAL.get(text[0].lower())


def _translate_months(text: str) -> str:
    return _WORD.sub(lambda m: _MONTHS_ID.get(m.group(0).lower(), m.group(0)), text)


def parse_datetime(raw: Any) -> datetime | None:
    """Parse a date / timestamp cell.

    Year-first input (``2023-01-15``, ``2023/02/01``, ``2023-01-15 08:30:00``)
    is read as-is, other numeric layouts day-first (``15/01/2023``), and
    Indonesian month names are understood (``15 Januari 2023``). Returns None
    when nothing usable can be parsed.
    """
    text = nullable_str(raw)
    if text is None:
        return None
    dayfirst = _YEAR_FIRST.match(text) is None
    try:
        with warnings.catch_warnings():
            # pandas warns when it has to guess the format per element
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(_translate_months(text), errors="coerce", dayfirst=dayfirst)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def parse_date(raw: Any) -> date | None:
    dt = parse_datetime(raw)
    return dt.date() if dt is not None else None
