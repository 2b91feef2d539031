from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from fleetops.models.config_models import (
    AppConfig,
    ColumnAliases,
    DatabaseConfig,
    FuelImportConfig,
    TableNames,
)
from fleetops.models.restore import RestoreOptions

"""Config loader.

Responsibilities:
- Load YAML config/fleetops.yml
- Validate against config_schema.json (unknown keys rejected)
- Apply defaults for every omitted section
"""

DEFAULT_CONFIG_PATH = Path("config/fleetops.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _coerce_dates(data: dict[str, Any]) -> dict[str, Any]:
    # YAML turns an unquoted 2024-12-01 into a date; the schema expects text
    restore = data.get("restore")
    if isinstance(restore, dict) and isinstance(restore.get("date_threshold"), date):
        restore["date_threshold"] = restore["date_threshold"].isoformat()
    return data


def _build_config(data: dict[str, Any]) -> AppConfig:
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )

    tables = TableNames(**(data.get("tables") or {}))

    import_raw = data.get("fuel_import") or {}
    columns_raw = import_raw.get("columns") or {}
    columns = ColumnAliases(**{name: tuple(aliases) for name, aliases in columns_raw.items()})
    fuel_import = FuelImportConfig(
        allowed_extensions=tuple(import_raw.get("allowed_extensions", FuelImportConfig.allowed_extensions)),
        columns=columns,
    )

    restore_raw = data.get("restore") or {}
    restore_kwargs: dict[str, Any] = {}
    if "dry_run" in restore_raw:
        restore_kwargs["dry_run"] = restore_raw["dry_run"]
    if "target_percentage" in restore_raw:
        restore_kwargs["target_percentage"] = float(restore_raw["target_percentage"])
    if "sample_size" in restore_raw:
        restore_kwargs["sample_size"] = restore_raw["sample_size"]
    if "date_threshold" in restore_raw:
        try:
            restore_kwargs["date_threshold"] = date.fromisoformat(restore_raw["date_threshold"])
        except ValueError as e:
            raise ConfigError(f"restore.date_threshold: {e}") from e

    return AppConfig(
        database=db,
        tables=tables,
        fuel_import=fuel_import,
        restore=RestoreOptions(**restore_kwargs),
    )


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(_coerce_dates(data))
    return _build_config(data)
