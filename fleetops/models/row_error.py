from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""Row-level error kinds for the fuel-purchase import.

Errors are carried as (row number, kind, offending value) and only rendered to
the user-facing "Fila N: ..." string at the HTTP / CLI boundary.
"""

__all__ = [
    "RowErrorKind",
    "RowError",
]


class RowErrorKind(Enum):
    """Recoverable per-row failure classification.

    The value doubles as the error_type written to the JSON Lines error log.
    """
    MISSING_FIELDS = "MISSING_FIELDS"
    INVALID_DATE = "INVALID_DATE"
    INVALID_SERIAL_DATE = "INVALID_SERIAL_DATE"
    SERIAL_OUT_OF_RANGE = "SERIAL_OUT_OF_RANGE"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    UNKNOWN_VEHICLE = "UNKNOWN_VEHICLE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_TOTAL = "INVALID_TOTAL"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

    @property
    def template(self) -> str:
        return _MESSAGES[self]


_MESSAGES: dict[RowErrorKind, str] = {
    RowErrorKind.MISSING_FIELDS: "Faltan campos obligatorios",
    RowErrorKind.INVALID_DATE: "Fecha inválida: {value}",
    RowErrorKind.INVALID_SERIAL_DATE: "Fecha inválida (serial de Excel): {value}",
    RowErrorKind.SERIAL_OUT_OF_RANGE: "Serial de Excel fuera de rango: {value}",
    RowErrorKind.INVALID_DATE_FORMAT: "Formato de fecha inválido. Use dd/mm/aaaa: {value}",
    RowErrorKind.UNKNOWN_VEHICLE: "Vehículo no encontrado: {value}",
    RowErrorKind.INVALID_QUANTITY: "Cantidad inválida: {value}",
    RowErrorKind.INVALID_TOTAL: "Total inválido: {value}",
    RowErrorKind.PERSISTENCE_ERROR: "Error interno - {value}",
}


@dataclass(frozen=True)
class RowError:
    """A rejected spreadsheet row.

    Attributes:
        row_number: Spreadsheet row (1-based, header is row 1)
        kind: Failure classification
        value: Offending cell value, or the exception message for persistence errors
    """
    row_number: int
    kind: RowErrorKind
    value: Any = None

    @property
    def message(self) -> str:
        return self.kind.template.format(value=self.value)

    def render(self) -> str:
        return f"Fila {self.row_number}: {self.message}"
