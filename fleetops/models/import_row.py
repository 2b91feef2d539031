from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""ImportRow model for the fuel-purchase spreadsheet import.

An ImportRow is the fixed-shape view of one spreadsheet line after the header
synonyms have been resolved. Values are kept raw (whatever pandas produced for
the cell); parsing happens in the row validator.
"""

__all__ = [
    "ImportRow",
    "FIELDS",
]

# Logical field names, in the order the validator checks them
FIELDS = ("date", "vehicle", "quantity", "total", "provider")


@dataclass(frozen=True)
class ImportRow:
    """One data row of the uploaded sheet.

    row_number is the spreadsheet row (header = row 1, first data row = row 2).
    """
    row_number: int
    date: Any = None
    vehicle: Any = None
    quantity: Any = None
    total: Any = None
    provider: Any = None

    def values(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in FIELDS)
