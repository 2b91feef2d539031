from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import date, datetime, time
from typing import Any

import psycopg2

from fleetops.models.config_models import TableNames
from fleetops.models.fuel_purchase import CreatedFuelPurchase, FuelPurchaseRecord
from fleetops.models.restore import AccountingStats, RestoreCandidate
from fleetops.models.vehicle import Vehicle

"""psycopg2 repositories for vehicles, fuel purchases and Flypass records.

Table names come from configuration (validated as identifiers by the config
schema); column names are fixed. Every driver error is wrapped in
RepositoryError so callers only need to know one exception type.
"""

__all__ = [
    "RepositoryError",
    "VehicleRepository",
    "FuelPurchaseRepository",
    "FlypassRepository",
]


class RepositoryError(Exception):
    pass


class _Repository:
    def __init__(self, cursor: Any, tables: TableNames | None = None) -> None:
        self.cursor = cursor
        self.tables = tables or TableNames()

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise RepositoryError(str(e).strip()) from e

    def _fetchall(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple[Any, ...]]:
        self._execute(sql, params)
        try:
            return list(self.cursor.fetchall())
        except psycopg2.Error as e:
            raise RepositoryError(str(e).strip()) from e

    def _scalar(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        rows = self._fetchall(sql, params)
        return rows[0][0] if rows else None


class VehicleRepository(_Repository):

    def list_active(self) -> list[Vehicle]:
        rows = self._fetchall(
            f"SELECT id, plate, brand, model FROM {self.tables.vehicles} "
            "WHERE is_active = true ORDER BY plate ASC"
        )
        return [Vehicle(id=r[0], plate=r[1], brand=r[2], model=r[3]) for r in rows]


class FuelPurchaseRepository(_Repository):
    """Inserts fuel purchases one row at a time.

    Each insert runs inside its own SAVEPOINT so that a rejected row does not
    abort the surrounding transaction for the rows after it.
    """

    SAVEPOINT = "fuel_purchase_row"

    def create(self, record: FuelPurchaseRecord) -> CreatedFuelPurchase:
        sql = (
            f"WITH inserted AS ("
            f"INSERT INTO {self.tables.fuel_purchases} "
            "(id, date, vehicle_id, quantity, total, provider, created_at, updated_at) "
            "VALUES (%s, %s, %s, %s, %s, %s, now(), now()) "
            "RETURNING id, date, vehicle_id, quantity, total, provider, created_at) "
            "SELECT i.id, i.date, i.vehicle_id, i.quantity, i.total, i.provider, i.created_at, "
            "v.plate, v.brand, v.model "
            f"FROM inserted i JOIN {self.tables.vehicles} v ON v.id = i.vehicle_id"
        )
        params = (
            uuid.uuid4().hex,
            record.date,
            record.vehicle_id,
            record.quantity,
            record.total,
            record.provider,
        )
        self._execute(f"SAVEPOINT {self.SAVEPOINT}")
        try:
            rows = self._fetchall(sql, params)
        except RepositoryError:
            self._execute(f"ROLLBACK TO SAVEPOINT {self.SAVEPOINT}")
            raise
        self._execute(f"RELEASE SAVEPOINT {self.SAVEPOINT}")
        if not rows:
            raise RepositoryError(f"vehicle not found for fuel purchase: {record.vehicle_id}")

        r = rows[0]
        return CreatedFuelPurchase(
            id=r[0],
            date=r[1].date() if isinstance(r[1], datetime) else r[1],
            vehicle_id=r[2],
            quantity=float(r[3]),
            total=float(r[4]),
            provider=r[5],
            created_at=r[6],
            vehicle=Vehicle(id=r[2], plate=r[7], brand=r[8], model=r[9]),
        )


class FlypassRepository(_Repository):
    """Access to toll-payment (Flypass) records and their accounted flag."""

    _CANDIDATE_COLUMNS = "id, document_number, toll_name, total, created_at"

    def count_total(self) -> int:
        return int(self._scalar(f"SELECT count(*) FROM {self.tables.flypass_data}") or 0)

    def count_accounted(self) -> int:
        return int(
            self._scalar(f"SELECT count(*) FROM {self.tables.flypass_data} WHERE accounted = true") or 0
        )

    def stats(self) -> AccountingStats:
        return AccountingStats(total=self.count_total(), accounted=self.count_accounted())

    def find_candidates(self, limit: int, threshold: date) -> list[RestoreCandidate]:
        """Unaccounted records with total > 0 created before threshold, oldest first."""
        if limit <= 0:
            return []
        rows = self._fetchall(
            f"SELECT {self._CANDIDATE_COLUMNS} FROM {self.tables.flypass_data} "
            "WHERE accounted = false AND created_at < %s AND total > 0 "
            "ORDER BY created_at ASC LIMIT %s",
            (datetime.combine(threshold, time.min), limit),
        )
        return [self._candidate(r) for r in rows]

    def find_in_range(self, start: datetime, end: datetime) -> list[RestoreCandidate]:
        """Unaccounted records with start <= created_at <= end."""
        rows = self._fetchall(
            f"SELECT {self._CANDIDATE_COLUMNS} FROM {self.tables.flypass_data} "
            "WHERE accounted = false AND created_at >= %s AND created_at <= %s "
            "ORDER BY created_at ASC",
            (start, end),
        )
        return [self._candidate(r) for r in rows]

    def mark_accounted(self, ids: Sequence[str]) -> int:
        """Flag the given ids in a single UPDATE; returns the affected row count."""
        if not ids:
            return 0
        self._execute(
            f"UPDATE {self.tables.flypass_data} SET accounted = true WHERE id = ANY(%s)",
            (list(ids),),
        )
        return int(self.cursor.rowcount)

    @staticmethod
    def _candidate(r: tuple[Any, ...]) -> RestoreCandidate:
        return RestoreCandidate(
            id=r[0],
            document_number=r[1],
            toll_name=r[2],
            total=float(r[3]),
            created_at=r[4],
        )
