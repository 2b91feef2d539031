# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from fastapi.testclient import TestClient

from fleetops.api.app import create_app
from fleetops.api.dependencies import Repositories, get_repository_session
from fleetops.db.repositories import RepositoryError
from fleetops.logging.init import reset_logging
from fleetops.models.config_models import AppConfig
from fleetops.models.fuel_purchase import CreatedFuelPurchase, FuelPurchaseRecord
from fleetops.models.restore import AccountingStats, RestoreCandidate
from fleetops.models.vehicle import Vehicle, VehicleLookup


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
tables:
  vehicles: vehicles
  fuel_purchases: fuel_purchases
  flypass_data: flypass_data
fuel_import:
  allowed_extensions: [".xlsx", ".xls"]
restore:
  dry_run: true
  target_percentage: 85
  date_threshold: "2024-12-01"
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "fleetops.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_workbook(path: Path, rows: list[dict[str, Any]], sheet_name: str = "Compras") -> Path:
    """Write rows (header taken from the first dict's keys) to an .xlsx file."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, index=False)
    return path


@pytest.fixture()
def workbook_factory(tmp_path: Path):
    def _make(rows: list[dict[str, Any]], name: str = "compras.xlsx") -> Path:
        return make_workbook(tmp_path / name, rows)
    return _make


# --- in-memory collaborators -------------------------------------------------

ACTIVE_VEHICLES = [
    Vehicle(id="veh-1", plate="ABC123", brand="Kenworth", model="T800"),
    Vehicle(id="veh-2", plate="XYZ789", brand="Chevrolet", model="NPR"),
]


@pytest.fixture()
def vehicles() -> VehicleLookup:
    return VehicleLookup.from_vehicles(ACTIVE_VEHICLES)


class FakeVehicleRepository:
    def __init__(self, vehicles: list[Vehicle] | None = None) -> None:
        self.vehicles = list(ACTIVE_VEHICLES if vehicles is None else vehicles)

    def list_active(self) -> list[Vehicle]:
        return list(self.vehicles)


class FakeFuelPurchaseRepository:
    """Stores created purchases; plates listed in fail_for raise like a DB error."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.rows: list[CreatedFuelPurchase] = []
        self.fail_for = fail_for or set()
        self._by_id = {v.id: v for v in ACTIVE_VEHICLES}

    def create(self, record: FuelPurchaseRecord) -> CreatedFuelPurchase:
        if record.vehicle_id in self.fail_for:
            raise RepositoryError("insert failed")
        created = CreatedFuelPurchase(
            id=f"fp-{len(self.rows) + 1}",
            date=record.date,
            vehicle_id=record.vehicle_id,
            quantity=record.quantity,
            total=record.total,
            provider=record.provider,
            vehicle=self._by_id.get(record.vehicle_id),
        )
        self.rows.append(created)
        return created


class FakeFlypassRepository:
    """In-memory Flypass table honouring the same selection rules as the SQL."""

    def __init__(self, records: list[dict[str, Any]] | None = None, fail_on: str | None = None) -> None:
        self.records = records or []
        self.fail_on = fail_on
        self.update_calls: list[list[str]] = []

    def _maybe_fail(self, op: str) -> None:
        if self.fail_on == op:
            raise RepositoryError(f"{op} failed")

    def stats(self) -> AccountingStats:
        self._maybe_fail("stats")
        return AccountingStats(
            total=len(self.records),
            accounted=sum(1 for r in self.records if r["accounted"]),
        )

    def find_candidates(self, limit: int, threshold: date) -> list[RestoreCandidate]:
        self._maybe_fail("find_candidates")
        cutoff = datetime.combine(threshold, datetime.min.time())
        eligible = [
            r for r in self.records
            if not r["accounted"] and r["created_at"] < cutoff and r["total"] > 0
        ]
        eligible.sort(key=lambda r: r["created_at"])
        return [self._candidate(r) for r in eligible[:limit]]

    def find_in_range(self, start: datetime, end: datetime) -> list[RestoreCandidate]:
        self._maybe_fail("find_in_range")
        return [
            self._candidate(r) for r in self.records
            if not r["accounted"] and start <= r["created_at"] <= end
        ]

    def mark_accounted(self, ids: list[str]) -> int:
        self._maybe_fail("mark_accounted")
        self.update_calls.append(list(ids))
        wanted = set(ids)
        count = 0
        for r in self.records:
            if r["id"] in wanted and not r["accounted"]:
                r["accounted"] = True
                count += 1
        return count

    @staticmethod
    def _candidate(r: dict[str, Any]) -> RestoreCandidate:
        return RestoreCandidate(
            id=r["id"],
            document_number=r.get("document_number"),
            toll_name=r.get("toll_name"),
            total=r["total"],
            created_at=r["created_at"],
        )


def flypass_records(
    total: int,
    accounted: int,
    eligible: int,
    *,
    before: datetime = datetime(2024, 6, 1),
    after: datetime = datetime(2025, 1, 15),
) -> list[dict[str, Any]]:
    """Build `total` records: `accounted` flagged, `eligible` unflagged below the
    2024-12-01 cutoff, the rest unflagged after it."""
    records = []
    for i in range(total):
        if i < accounted:
            flag, created = True, before
        elif i < accounted + eligible:
            flag, created = False, before.replace(day=1 + (i % 28))
        else:
            flag, created = False, after
        records.append({
            "id": f"fly-{i}",
            "document_number": f"FE{i:05d}",
            "toll_name": "Peaje Siberia",
            "total": 11500.0,
            "created_at": created,
            "accounted": flag,
        })
    return records


@pytest.fixture()
def purchase_repo() -> FakeFuelPurchaseRepository:
    return FakeFuelPurchaseRepository()


@pytest.fixture()
def vehicle_repo() -> FakeVehicleRepository:
    return FakeVehicleRepository()


@pytest.fixture()
def flypass_repo_factory():
    def _make(total: int, accounted: int, eligible: int, fail_on: str | None = None) -> FakeFlypassRepository:
        return FakeFlypassRepository(flypass_records(total, accounted, eligible), fail_on=fail_on)
    return _make


@pytest.fixture()
def failing_purchase_repo():
    def _make(*vehicle_ids: str) -> FakeFuelPurchaseRepository:
        return FakeFuelPurchaseRepository(fail_for=set(vehicle_ids))
    return _make


class FakeRepositorySession:
    """Callable stand-in for the API's repository session.

    connect_error is raised on entry, commit_error when the block exits cleanly.
    """

    def __init__(
        self,
        vehicles: Any = None,
        purchases: Any = None,
        connect_error: Exception | None = None,
        commit_error: Exception | None = None,
    ) -> None:
        self.vehicles = vehicles if vehicles is not None else FakeVehicleRepository()
        self.purchases = purchases if purchases is not None else FakeFuelPurchaseRepository()
        self.connect_error = connect_error
        self.commit_error = commit_error
        self.opened = 0

    @contextmanager
    def __call__(self) -> Iterator[Repositories]:
        self.opened += 1
        if self.connect_error is not None:
            raise self.connect_error
        yield Repositories(vehicles=self.vehicles, purchases=self.purchases)
        if self.commit_error is not None:
            raise self.commit_error


@pytest.fixture()
def api_client():
    """Build a TestClient whose repository session is the given fake."""
    def _make(session: FakeRepositorySession, config: AppConfig | None = None) -> TestClient:
        app = create_app(config=config or AppConfig())
        app.dependency_overrides[get_repository_session] = lambda: session
        return TestClient(app)
    return _make


@pytest.fixture()
def repository_session():
    return FakeRepositorySession


@pytest.fixture()
def vehicle_repo_factory():
    return FakeVehicleRepository
