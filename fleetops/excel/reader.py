from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from fleetops.models.config_models import ColumnAliases
from fleetops.models.import_row import FIELDS, ImportRow

"""Workbook reader for the fuel-purchase import.

Only the first sheet is read. Row 1 is the header; data starts on row 2.
Header synonyms are resolved once per file so every ImportRow has the same
fixed shape regardless of how the columns were spelled.
"""

logger = logging.getLogger(__name__)

# Spreadsheet row of the first data line (row 1 holds the headers)
FIRST_DATA_ROW = 2


class WorkbookReadError(Exception):
    """Raised when the uploaded bytes are not a readable workbook."""

class EmptySheetError(Exception):
    """Raised when the first sheet has no data rows."""


def read_first_sheet(source: bytes | Path) -> pd.DataFrame:
    """Read the first sheet of a workbook with row 1 as header.

    Parameters
    ----------
    source: raw upload bytes or a path on disk
    """
    target: Any = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
    try:
        with pd.ExcelFile(target) as xls:
            if not xls.sheet_names:
                raise EmptySheetError("workbook has no sheets")
            return xls.parse(xls.sheet_names[0], header=0)
    except EmptySheetError:
        raise
    except Exception as e:  # openpyxl/xlrd raise a variety of types for bad input
        raise WorkbookReadError(f"unreadable workbook: {e}") from e


def resolve_columns(columns: Sequence[Any], aliases: ColumnAliases) -> dict[str, str | None]:
    """Map each logical field to the first accepted header present in the sheet."""
    present = {str(c).strip(): c for c in columns}
    resolved: dict[str, str | None] = {}
    for name in FIELDS:
        match = next((alias for alias in aliases.for_field(name) if alias in present), None)
        resolved[name] = present[match] if match is not None else None
    return resolved


def extract_rows(df: pd.DataFrame, aliases: ColumnAliases | None = None) -> list[ImportRow]:
    """Turn a raw sheet into fixed-shape ImportRows.

    Fully blank rows are dropped before numbering, so row_number is
    data index + 2.

    Raises:
        EmptySheetError: no data rows remain
    """
    aliases = aliases or ColumnAliases()
    data = df.dropna(how="all")
    if data.empty:
        raise EmptySheetError("sheet has no data rows")

    resolved = resolve_columns(list(df.columns), aliases)
    unresolved = [name for name, col in resolved.items() if col is None]
    if unresolved:
        logger.warning("no header found for fields=%s columns=%s", unresolved, [str(c) for c in df.columns])

    rows: list[ImportRow] = []
    for index, (_, raw) in enumerate(data.iterrows()):
        values: dict[str, Any] = {}
        for name, col in resolved.items():
            if col is None:
                values[name] = None
                continue
            val = raw[col]
            values[name] = None if _is_blank(val) else val
        rows.append(ImportRow(row_number=index + FIRST_DATA_ROW, **values))
    return rows


def _is_blank(val: Any) -> bool:
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False
