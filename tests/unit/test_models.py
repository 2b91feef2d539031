from __future__ import annotations

from datetime import date, datetime

import numpy as np

from fleetops.models import (
    AccountingStats,
    CreatedFuelPurchase,
    FuelImportConfig,
    ImportReport,
    RestoreCandidate,
    RestoreResult,
    RowError,
    RowErrorKind,
    Vehicle,
    VehicleLookup,
)


def test_vehicle_lookup_normalizes_plates():
    lookup = VehicleLookup.from_vehicles([Vehicle(id="v1", plate=" abc123")])
    assert lookup.resolve("ABC123 ") == "v1"
    assert "abc123" in lookup
    assert "ZZZ999" not in lookup
    assert len(lookup) == 1


def test_vehicle_lookup_matches_numeric_plates_read_as_float():
    lookup = VehicleLookup.from_vehicles([Vehicle(id="v9", plate="123456")])
    assert lookup.resolve(123456.0) == "v9"
    assert lookup.resolve(np.float64(123456.0)) == "v9"
    assert lookup.resolve(123456) == "v9"
    assert lookup.resolve(123456.5) is None


def test_row_error_render():
    assert RowError(4, RowErrorKind.INVALID_TOTAL, "-1").render() == "Fila 4: Total inválido: -1"
    assert RowError(2, RowErrorKind.MISSING_FIELDS).render() == "Fila 2: Faltan campos obligatorios"
    assert RowError(9, RowErrorKind.INVALID_DATE_FORMAT, "15/01").message == (
        "Formato de fecha inválido. Use dd/mm/aaaa: 15/01"
    )


def test_import_report_response_shape():
    created = CreatedFuelPurchase(
        id="fp-1",
        date=date(2024, 1, 15),
        vehicle_id="v1",
        quantity=50.0,
        total=200000.0,
        provider="Terpel",
        vehicle=Vehicle(id="v1", plate="ABC123"),
        created_at=datetime(2024, 1, 20, 8, 0),
    )
    report = ImportReport(
        total_rows=2,
        processed=1,
        errors=1,
        details=[RowError(3, RowErrorKind.UNKNOWN_VEHICLE, "ZZZ999")],
        created=[created],
    )
    body = report.to_response()
    assert body["message"] == "Procesamiento completado"
    assert body["summary"] == {"totalRows": 2, "processed": 1, "errors": 1}
    assert body["details"] == ["Fila 3: Vehículo no encontrado: ZZZ999"]
    item = body["created"][0]
    assert item["date"] == "2024-01-15"
    assert item["vehicleId"] == "v1"
    assert item["vehicle"]["plate"] == "ABC123"
    assert item["createdAt"] == "2024-01-20T08:00:00"


def test_fuel_import_accepts_extensions_case_insensitively():
    cfg = FuelImportConfig()
    assert cfg.accepts("compras.xlsx")
    assert cfg.accepts("COMPRAS.XLS")
    assert not cfg.accepts("compras.csv")
    assert not cfg.accepts("xlsx")


def test_accounting_stats():
    stats = AccountingStats(total=3, accounted=2)
    assert stats.not_accounted == 1
    assert stats.percentage_accounted == 66.67
    assert stats.to_dict() == {
        "total": 3,
        "accounted": 2,
        "notAccounted": 1,
        "percentageAccounted": "66.67",
    }
    assert AccountingStats(0, 0).percentage_accounted == 0.0


def test_restore_result_to_dict_omits_unset_fields():
    result = RestoreResult(success=True, duration_seconds=1.234, records_processed=0, message="No changes needed")
    assert result.to_dict() == {
        "success": True,
        "duration": "1.23 segundos",
        "dryRun": False,
        "recordsProcessed": 0,
        "message": "No changes needed",
    }


def test_restore_candidate_describe():
    c = RestoreCandidate("f1", "FE001", "Peaje Siberia", 11500.0, datetime(2024, 6, 1, 9, 30))
    assert c.describe() == "FE001 - Peaje Siberia - $11,500 - 2024-06-01"
