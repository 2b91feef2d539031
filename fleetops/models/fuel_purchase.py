from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from .row_error import RowError
from .vehicle import Vehicle

"""Fuel purchase domain models.

- FuelPurchaseRecord: a validated row, ready to be persisted
- CreatedFuelPurchase: the stored row as returned by the storage layer
- ImportReport: immutable summary of one import call
"""

__all__ = [
    "FuelPurchaseRecord",
    "CreatedFuelPurchase",
    "ImportReport",
]


@dataclass(frozen=True)
class FuelPurchaseRecord:
    date: date
    vehicle_id: str
    quantity: float
    total: float
    provider: str


@dataclass(frozen=True)
class CreatedFuelPurchase:
    id: str
    date: date
    vehicle_id: str
    quantity: float
    total: float
    provider: str
    vehicle: Vehicle | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "vehicleId": self.vehicle_id,
            "quantity": self.quantity,
            "total": self.total,
            "provider": self.provider,
            "vehicle": self.vehicle.to_dict() if self.vehicle else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ImportReport:
    """Result of a fuel-purchase import.

    details keeps the row errors in file order; they are rendered to strings
    only by to_response().
    """
    total_rows: int
    processed: int
    errors: int
    details: list[RowError] = field(default_factory=list)
    created: list[CreatedFuelPurchase] = field(default_factory=list)

    @property
    def error_messages(self) -> list[str]:
        return [e.render() for e in self.details]

    def to_response(self, message: str = "Procesamiento completado") -> dict[str, Any]:
        return {
            "message": message,
            "summary": {
                "totalRows": self.total_rows,
                "processed": self.processed,
                "errors": self.errors,
            },
            "details": self.error_messages,
            "created": [c.to_dict() for c in self.created],
        }
