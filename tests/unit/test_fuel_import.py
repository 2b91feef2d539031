from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from fleetops.excel.reader import EmptySheetError, WorkbookReadError
from fleetops.logging.error_log import ErrorLogBuffer
from fleetops.models.import_row import ImportRow
from fleetops.models.row_error import RowErrorKind
from fleetops.models.vehicle import VehicleLookup
from fleetops.services.fuel_import import import_fuel_purchases, run_import


def _row(n: int, **overrides) -> ImportRow:
    values = {
        "date": "15/01/2024",
        "vehicle": "ABC123",
        "quantity": 50,
        "total": 200000,
        "provider": "Terpel",
    }
    values.update(overrides)
    return ImportRow(row_number=n, **values)


def test_single_valid_row(vehicles: VehicleLookup, purchase_repo):
    report = run_import([_row(2)], vehicles, purchase_repo.create)
    assert (report.total_rows, report.processed, report.errors) == (1, 1, 0)
    assert report.details == []
    created = report.created[0]
    assert created.date == date(2024, 1, 15)
    assert created.vehicle_id == "veh-1"
    assert created.quantity == 50.0
    assert created.total == 200000.0
    assert created.provider == "Terpel"
    assert created.vehicle is not None and created.vehicle.plate == "ABC123"


def test_mixed_rows_keep_file_order(vehicles: VehicleLookup, purchase_repo):
    rows = [
        _row(2),
        _row(3, vehicle="ZZZ999"),
        _row(4, quantity=None),
        _row(5, vehicle="xyz789", date=45306),
        _row(6, total="-1"),
    ]
    report = run_import(rows, vehicles, purchase_repo.create)
    assert (report.total_rows, report.processed, report.errors) == (5, 2, 3)
    assert report.processed + report.errors == report.total_rows
    assert report.error_messages == [
        "Fila 3: Vehículo no encontrado: ZZZ999",
        "Fila 4: Faltan campos obligatorios",
        "Fila 6: Total inválido: -1",
    ]
    assert [c.vehicle_id for c in report.created] == ["veh-1", "veh-2"]
    assert len(purchase_repo.rows) == 2


def test_persistence_failure_is_isolated(vehicles: VehicleLookup, failing_purchase_repo):
    repo = failing_purchase_repo("veh-2")
    rows = [_row(2), _row(3, vehicle="XYZ789"), _row(4)]
    report = run_import(rows, vehicles, repo.create)
    assert (report.processed, report.errors) == (2, 1)
    err = report.details[0]
    assert err.row_number == 3
    assert err.kind is RowErrorKind.PERSISTENCE_ERROR
    assert err.render() == "Fila 3: Error interno - insert failed"


def test_unexpected_persist_exception_becomes_row_error(vehicles: VehicleLookup):
    def boom(record):
        raise RuntimeError("connection reset")

    report = run_import([_row(2), _row(3)], vehicles, boom)
    assert report.processed == 0
    assert report.errors == 2
    assert all(e.kind is RowErrorKind.PERSISTENCE_ERROR for e in report.details)


def test_empty_rows_give_empty_report(vehicles: VehicleLookup, purchase_repo):
    report = run_import([], vehicles, purchase_repo.create)
    assert (report.total_rows, report.processed, report.errors) == (0, 0, 0)


def test_errors_go_to_error_log(tmp_path: Path, vehicles: VehicleLookup, purchase_repo):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    run_import(
        [_row(2), _row(3, date="31/02/2024")],
        vehicles,
        purchase_repo.create,
        source="compras.xlsx",
        sheet="Compras",
        error_log=buf,
    )
    path = buf.flush()
    assert path is not None
    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    obj = json.loads(lines[0])
    assert obj["file"] == "compras.xlsx"
    assert obj["sheet"] == "Compras"
    assert obj["row"] == 3
    assert obj["error_type"] == "INVALID_DATE"
    assert obj["message"] == "Fecha inválida: 31/02/2024"


def test_import_workbook_rows_are_numbered_from_two(workbook_factory, vehicles: VehicleLookup, purchase_repo):
    path = workbook_factory([
        {"Fecha": "15/01/2024", "Vehículo": "ABC123", "Cantidad": 50, "Total": 200000, "Proveedor": "Terpel"},
        {"Fecha": "16/01/2024", "Vehículo": "NOPE01", "Cantidad": 20, "Total": 80000, "Proveedor": "Esso"},
        {"Fecha": "17/01/2024", "Vehículo": "XYZ789", "Cantidad": 0, "Total": 1000, "Proveedor": "Esso"},
    ])
    report = import_fuel_purchases(path, vehicles, purchase_repo.create)
    assert (report.total_rows, report.processed, report.errors) == (3, 1, 2)
    assert report.error_messages == [
        "Fila 3: Vehículo no encontrado: NOPE01",
        "Fila 4: Cantidad inválida: 0",
    ]


def test_import_accepts_bytes(workbook_factory, vehicles: VehicleLookup, purchase_repo):
    path = workbook_factory([
        {"Fecha": "15/01/2024", "Vehículo": "ABC123", "Cantidad": 50, "Total": 200000, "Proveedor": "Terpel"},
    ])
    report = import_fuel_purchases(path.read_bytes(), vehicles, purchase_repo.create)
    assert report.processed == 1


def test_import_rejects_garbage_bytes(vehicles: VehicleLookup, purchase_repo):
    with pytest.raises(WorkbookReadError):
        import_fuel_purchases(b"not a workbook", vehicles, purchase_repo.create)


def test_import_rejects_header_only_sheet(tmp_path: Path, vehicles: VehicleLookup, purchase_repo):
    path = tmp_path / "vacio.xlsx"
    pd.DataFrame(columns=["Fecha", "Vehículo", "Cantidad", "Total", "Proveedor"]).to_excel(path, index=False)
    with pytest.raises(EmptySheetError):
        import_fuel_purchases(path, vehicles, purchase_repo.create)
    assert purchase_repo.rows == []


def test_lowercase_headers_and_text_cells(workbook_factory, vehicles: VehicleLookup, purchase_repo):
    path = workbook_factory([
        {"fecha": "15/01/2024", "vehiculo": "ABC123", "cantidad": "50", "total": "200000", "proveedor": "Terpel"},
    ])
    report = import_fuel_purchases(path, vehicles, purchase_repo.create)
    assert report.errors == 0
    created = report.created[0]
    assert (created.date, created.quantity, created.total, created.provider) == (
        date(2024, 1, 15), 50.0, 200000.0, "Terpel"
    )
