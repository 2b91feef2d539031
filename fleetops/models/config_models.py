from __future__ import annotations

from dataclasses import dataclass, field

from .restore import RestoreOptions

"""Config dataclasses for the fleetops import / repair tooling.

Built by fleetops.config.loader from config/fleetops.yml after JSON schema
validation. Environment variables take precedence over the database section.
"""

__all__ = [
    "DatabaseConfig",
    "TableNames",
    "ColumnAliases",
    "FuelImportConfig",
    "AppConfig",
    "DEFAULT_COLUMN_ALIASES",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback (used when DATABASE_URL / PG* are unset)."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class TableNames:
    vehicles: str = "vehicles"
    fuel_purchases: str = "fuel_purchases"
    flypass_data: str = "flypass_data"


# Accepted header spellings per logical field, in priority order
DEFAULT_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("Fecha (dd/mm/aaaa)", "Fecha (YYYY-MM-DD)", "Fecha", "fecha"),
    "vehicle": ("Vehículo (Placa)", "Vehículo", "vehiculo", "VehicleId"),
    "quantity": ("Cantidad (Galones)", "Cantidad", "cantidad", "quantity"),
    "total": ("Total ($)", "Total", "total"),
    "provider": ("Proveedor", "proveedor", "provider"),
}


@dataclass(frozen=True)
class ColumnAliases:
    date: tuple[str, ...] = DEFAULT_COLUMN_ALIASES["date"]
    vehicle: tuple[str, ...] = DEFAULT_COLUMN_ALIASES["vehicle"]
    quantity: tuple[str, ...] = DEFAULT_COLUMN_ALIASES["quantity"]
    total: tuple[str, ...] = DEFAULT_COLUMN_ALIASES["total"]
    provider: tuple[str, ...] = DEFAULT_COLUMN_ALIASES["provider"]

    def for_field(self, name: str) -> tuple[str, ...]:
        return getattr(self, name)


@dataclass(frozen=True)
class FuelImportConfig:
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xls")
    columns: ColumnAliases = field(default_factory=ColumnAliases)

    def accepts(self, filename: str) -> bool:
        return filename.lower().endswith(tuple(ext.lower() for ext in self.allowed_extensions))


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tables: TableNames = field(default_factory=TableNames)
    fuel_import: FuelImportConfig = field(default_factory=FuelImportConfig)
    restore: RestoreOptions = field(default_factory=RestoreOptions)
