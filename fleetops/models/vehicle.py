from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

"""Vehicle models and the plate lookup used by the row validator."""

__all__ = [
    "Vehicle",
    "VehicleLookup",
    "normalize_plate",
]


def normalize_plate(plate: object) -> str:
    # an all-digit plate column with blanks comes back from pandas as float
    if isinstance(plate, float) and plate.is_integer():
        plate = int(plate)
    return str(plate).strip().upper()


@dataclass(frozen=True)
class Vehicle:
    id: str
    plate: str
    brand: str | None = None
    model: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"id": self.id, "plate": self.plate, "brand": self.brand, "model": self.model}


class VehicleLookup:
    """Case-insensitive plate -> vehicle id mapping.

    Must be built from active vehicles only; inactive plates are reported as
    unknown by the validator.
    """

    def __init__(self, plates: dict[str, str] | None = None) -> None:
        self._ids: dict[str, str] = {}
        for plate, vehicle_id in (plates or {}).items():
            self._ids[normalize_plate(plate)] = vehicle_id

    @classmethod
    def from_vehicles(cls, vehicles: Iterable[Vehicle]) -> VehicleLookup:
        return cls({v.plate: v.id for v in vehicles})

    def resolve(self, plate: object) -> str | None:
        return self._ids.get(normalize_plate(plate))

    def __contains__(self, plate: object) -> bool:
        return self.resolve(plate) is not None

    def __len__(self) -> int:
        return len(self._ids)
