from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from ..models.row_error import RowErrorKind

"""Spreadsheet date normalization.

A date cell can reach us as a native datetime (openpyxl/pandas converted it),
as an Excel serial day count (number or numeric text), as dd/mm/yyyy text or
as some ISO-like string. normalize_date() maps all of them to a calendar date.

Excel serials: day 1 is 1900-01-01 and Excel also counts the non-existent
1900-02-29, hence the -2 offset against a 1900-01-01 epoch.
"""

__all__ = [
    "DateNormalizationError",
    "normalize_date",
    "EXCEL_EPOCH",
    "MIN_EXCEL_SERIAL",
    "MAX_EXCEL_SERIAL",
]

EXCEL_EPOCH = date(1900, 1, 1)
MIN_EXCEL_SERIAL = 1
MAX_EXCEL_SERIAL = 2958465  # 9999-12-31

# float() alone would also take "45_306", "nan" and "inf"
_PLAIN_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class DateNormalizationError(ValueError):
    """Raised when a cell cannot be turned into a calendar date."""

    def __init__(self, kind: RowErrorKind, value: Any) -> None:
        self.kind = kind
        self.value = value
        super().__init__(kind.template.format(value=value))


def _as_number(text: str) -> float | None:
    if not _PLAIN_NUMBER.fullmatch(text):
        return None
    number = float(text)
    # "1e999"
    if not math.isfinite(number):
        return None
    return number


def _from_serial(serial: float, raw: Any) -> date:
    if not MIN_EXCEL_SERIAL <= serial <= MAX_EXCEL_SERIAL:
        raise DateNormalizationError(RowErrorKind.SERIAL_OUT_OF_RANGE, raw)
    try:
        return EXCEL_EPOCH + timedelta(days=math.floor(serial) - 2)
    except OverflowError as e:
        raise DateNormalizationError(RowErrorKind.INVALID_SERIAL_DATE, raw) from e


def _from_day_month_year(text: str, raw: Any) -> date:
    parts = [p.strip() for p in text.split("/")]
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise DateNormalizationError(RowErrorKind.INVALID_DATE_FORMAT, raw)
    day, month, year = (int(p) for p in parts)
    # two-digit years never round-trip to the typed value
    if year < 100:
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw)
    try:
        return date(year, month, day)
    except ValueError as e:
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw) from e


def _from_text(text: str, raw: Any) -> date:
    try:
        parsed = pd.to_datetime(text)
    except (ValueError, TypeError, OverflowError) as e:
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw) from e
    if parsed is pd.NaT or pd.isna(parsed):
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw)
    return parsed.date()


def normalize_date(raw: Any) -> date:
    """Normalize a raw spreadsheet cell to a calendar date.

    Order of interpretation:
        1. native date/datetime (time of day dropped)
        2. Excel serial number within [1, 2958465]
        3. text containing "/" read as day/month/year
        4. anything else through the generic pandas parser

    Raises:
        DateNormalizationError: kind tells which interpretation failed
    """
    if raw is pd.NaT:
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw)
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw

    if isinstance(raw, bool):
        raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw)

    text = str(raw).strip()
    number = _as_number(text)
    if number is not None:
        if number <= 0:
            raise DateNormalizationError(RowErrorKind.INVALID_DATE, raw)
        return _from_serial(number, raw)
    if "/" in text:
        return _from_day_month_year(text, raw)
    return _from_text(text, raw)
