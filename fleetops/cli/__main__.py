from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

import psycopg2

from fleetops.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from fleetops.db.connection import db_connection, load_env_file
from fleetops.db.repositories import (
    FlypassRepository,
    FuelPurchaseRepository,
    RepositoryError,
    VehicleRepository,
)
from fleetops.excel.reader import EmptySheetError, WorkbookReadError
from fleetops.logging.error_log import ErrorLogBuffer
from fleetops.logging.init import log_summary, setup_logging
from fleetops.models.vehicle import VehicleLookup
from fleetops.services.accounted_restorer import AccountedStatusRestorer
from fleetops.services.fuel_import import import_fuel_purchases
from fleetops.services.summary import render_import_summary, render_restore_summary
from fleetops.services.template import build_template

"""CLI entrypoint.

Commands:
    import FILE                 fuel-purchase workbook -> database
    template OUT                write the fuel-purchase template workbook
    restore                     Flypass accounted-status restoration (dry run unless --apply)
    restore-range START END     flag every unaccounted record in a date range

Options come from config/fleetops.yml; flags only override them.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _iso_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD: {text}") from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="fleetops", description="Fuel-purchase import and Flypass repair tools")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to the YAML config")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import fuel purchases from a workbook")
    imp.add_argument("file", type=Path)

    tpl = sub.add_parser("template", help="Write the fuel-purchase template workbook")
    tpl.add_argument("output", type=Path)

    rst = sub.add_parser("restore", help="Restore the Flypass accounted flag up to a target percentage")
    rst.add_argument("--apply", action="store_true", help="Write changes (default is a dry run)")
    rst.add_argument("--target-percentage", type=float, default=None)
    rst.add_argument("--date-threshold", type=_iso_date, default=None)

    rng = sub.add_parser("restore-range", help="Flag every unaccounted Flypass record in a date range")
    rng.add_argument("start", type=_iso_date)
    rng.add_argument("end", type=_iso_date)
    rng.add_argument("--apply", action="store_true", help="Write changes (default is a dry run)")
    return p.parse_args(argv)


def _run_import(cfg, path: Path, logger: logging.Logger) -> int:
    if not path.exists():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    if not cfg.fuel_import.accepts(path.name):
        logger.error(f"not an Excel workbook ({', '.join(cfg.fuel_import.allowed_extensions)}): {path.name}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer()
    with db_connection(cfg.database) as cur:
        vehicles = VehicleLookup.from_vehicles(VehicleRepository(cur, cfg.tables).list_active())
        logger.info(f"active vehicles: {len(vehicles)}")
        try:
            report = import_fuel_purchases(
                path,
                vehicles,
                FuelPurchaseRepository(cur, cfg.tables).create,
                aliases=cfg.fuel_import.columns,
                source=path.name,
                error_log=error_log,
                progress=True,
            )
        except (WorkbookReadError, EmptySheetError) as e:
            logger.error(f"import: {e}")
            return EXIT_FATAL

    for line in report.error_messages:
        logger.warning(line)
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")
    log_summary(render_import_summary(report)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if report.errors else EXIT_SUCCESS_ALL


def _run_template(cfg, output: Path, logger: logging.Logger) -> int:
    with db_connection(cfg.database) as cur:
        vehicles = VehicleRepository(cur, cfg.tables).list_active()
    output.write_bytes(build_template(vehicles))
    logger.info(f"template written: {output} vehicles={len(vehicles)}")
    return EXIT_SUCCESS_ALL


def _run_restore(cfg, args: argparse.Namespace, logger: logging.Logger) -> int:
    options = cfg.restore
    overrides = {}
    if args.apply:
        overrides["dry_run"] = False
    # restore-range only takes --apply
    if getattr(args, "target_percentage", None) is not None:
        overrides["target_percentage"] = args.target_percentage
    if getattr(args, "date_threshold", None) is not None:
        overrides["date_threshold"] = args.date_threshold
    if overrides:
        try:
            options = replace(options, **overrides)
        except ValueError as e:
            logger.error(f"restore: {e}")
            return EXIT_FATAL

    with db_connection(cfg.database) as cur:
        restorer = AccountedStatusRestorer(FlypassRepository(cur, cfg.tables))
        if args.command == "restore-range":
            if args.end < args.start:
                logger.error(f"restore-range: end {args.end} is before start {args.start}")
                return EXIT_FATAL
            result = restorer.restore_by_date_pattern(args.start, args.end, dry_run=not args.apply)
        else:
            result = restorer.restore(options)

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    log_summary(render_restore_summary(result)[len("SUMMARY "):])
    if result.success and result.dry_run:
        logger.info("dry run only; re-run with --apply to write the changes")
    if result.error is not None:
        return EXIT_FATAL
    return EXIT_SUCCESS_ALL if result.success else EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read the real argv when None is passed; tests call main([...])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        for h in logger.handlers:
            h.setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    # .env wins over the config file for connection settings
    load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        if args.command == "import":
            return _run_import(cfg, args.file, logger)
        if args.command == "template":
            return _run_template(cfg, args.output, logger)
        return _run_restore(cfg, args, logger)
    except RepositoryError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL
    except psycopg2.Error as e:
        # connection failures surface here
        logger.error(f"{args.command}: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
