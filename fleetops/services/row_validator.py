from __future__ import annotations

import math
from typing import Any

import pandas as pd

from ..models.fuel_purchase import FuelPurchaseRecord
from ..models.import_row import ImportRow
from ..models.row_error import RowErrorKind
from ..models.vehicle import VehicleLookup
from .date_normalizer import DateNormalizationError, normalize_date

"""Row validation for the fuel-purchase import.

Checks run in a fixed order and the first failure wins:
presence -> date -> vehicle plate -> quantity -> total.
"""

__all__ = [
    "RowValidationError",
    "validate_row",
    "is_missing",
    "parse_positive_number",
]


class RowValidationError(ValueError):
    """A row was rejected; kind and value feed the RowError."""

    def __init__(self, kind: RowErrorKind, value: Any = None) -> None:
        self.kind = kind
        self.value = value
        super().__init__(kind.template.format(value=value))


def is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_positive_number(value: Any) -> float | None:
    """Return value as a float when it is a finite number > 0, else None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def validate_row(row: ImportRow, vehicles: VehicleLookup) -> FuelPurchaseRecord:
    """Validate one import row against the active-vehicle lookup.

    Raises:
        RowValidationError: the row is rejected as a whole
    """
    if any(is_missing(v) for v in row.values()):
        raise RowValidationError(RowErrorKind.MISSING_FIELDS)

    try:
        purchase_date = normalize_date(row.date)
    except DateNormalizationError as e:
        raise RowValidationError(e.kind, e.value) from e

    vehicle_id = vehicles.resolve(row.vehicle)
    if vehicle_id is None:
        raise RowValidationError(RowErrorKind.UNKNOWN_VEHICLE, row.vehicle)

    quantity = parse_positive_number(row.quantity)
    if quantity is None:
        raise RowValidationError(RowErrorKind.INVALID_QUANTITY, row.quantity)

    total = parse_positive_number(row.total)
    if total is None:
        raise RowValidationError(RowErrorKind.INVALID_TOTAL, row.total)

    return FuelPurchaseRecord(
        date=purchase_date,
        vehicle_id=vehicle_id,
        quantity=quantity,
        total=total,
        provider=str(row.provider).strip(),
    )
