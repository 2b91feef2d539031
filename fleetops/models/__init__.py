"""Domain models for the fleetops fuel-purchase import and Flypass repair tools."""

from .config_models import AppConfig, ColumnAliases, DatabaseConfig, FuelImportConfig, TableNames
from .error_record import ErrorRecord
from .fuel_purchase import CreatedFuelPurchase, FuelPurchaseRecord, ImportReport
from .import_row import ImportRow
from .restore import AccountingStats, RestoreCandidate, RestoreOptions, RestoreResult
from .row_error import RowError, RowErrorKind
from .vehicle import Vehicle, VehicleLookup

__all__ = [
    # Configuration models
    "AppConfig",
    "ColumnAliases",
    "DatabaseConfig",
    "FuelImportConfig",
    "TableNames",
    # Import models
    "CreatedFuelPurchase",
    "ErrorRecord",
    "FuelPurchaseRecord",
    "ImportReport",
    "ImportRow",
    "RowError",
    "RowErrorKind",
    "Vehicle",
    "VehicleLookup",
    # Restore models
    "AccountingStats",
    "RestoreCandidate",
    "RestoreOptions",
    "RestoreResult",
]
