from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from ..excel.reader import extract_rows, read_first_sheet
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ColumnAliases
from ..models.error_record import ErrorRecord
from ..models.fuel_purchase import CreatedFuelPurchase, FuelPurchaseRecord, ImportReport
from ..models.import_row import ImportRow
from ..models.row_error import RowError, RowErrorKind
from ..models.vehicle import VehicleLookup
from .progress import ProgressTracker
from .row_validator import RowValidationError, validate_row

"""Fuel-purchase import service.

Rows are processed strictly in file order, one at a time. Row-level failures
(validation or a failed insert) are recorded and never abort the batch; only
input-level problems (unreadable workbook, empty sheet) propagate.
"""

logger = logging.getLogger(__name__)

PersistFn = Callable[[FuelPurchaseRecord], CreatedFuelPurchase]


def run_import(
    rows: Iterable[ImportRow],
    vehicles: VehicleLookup,
    persist: PersistFn,
    *,
    source: str = "<upload>",
    sheet: str = "",
    error_log: ErrorLogBuffer | None = None,
    progress: bool = False,
) -> ImportReport:
    """Validate and persist every row, accumulating an ImportReport.

    Args:
        rows: Fixed-shape rows in file order
        vehicles: Active-vehicle plate lookup
        persist: Storage collaborator; any exception it raises becomes a
            PERSISTENCE_ERROR for that row only
        source: Workbook name used in the error log
        sheet: Sheet name used in the error log
        error_log: Optional JSON Lines buffer receiving every row error
        progress: Show a tqdm bar (TTY only)

    Returns:
        ImportReport with counters, ordered row errors and created records
    """
    rows = list(rows)
    details: list[RowError] = []
    created: list[CreatedFuelPurchase] = []

    with ProgressTracker(len(rows), enabled=progress) as tracker:
        for row in rows:
            error: RowError | None = None
            try:
                record = validate_row(row, vehicles)
            except RowValidationError as e:
                error = RowError(row.row_number, e.kind, e.value)
            else:
                try:
                    created.append(persist(record))
                except Exception as e:
                    logger.debug("row=%d persist failed", row.row_number, exc_info=True)
                    error = RowError(row.row_number, RowErrorKind.PERSISTENCE_ERROR, e)

            if error is not None:
                details.append(error)
                logger.debug("row rejected: %s", error.render())
                if error_log is not None:
                    error_log.append(ErrorRecord.from_row_error(source, sheet, error))
            tracker.advance(success=error is None)

    report = ImportReport(
        total_rows=len(rows),
        processed=len(created),
        errors=len(details),
        details=details,
        created=created,
    )
    logger.info(
        "fuel import source=%s rows=%d processed=%d errors=%d",
        source,
        report.total_rows,
        report.processed,
        report.errors,
    )
    return report


def import_fuel_purchases(
    data: bytes | Path,
    vehicles: VehicleLookup,
    persist: PersistFn,
    *,
    aliases: ColumnAliases | None = None,
    source: str = "<upload>",
    error_log: ErrorLogBuffer | None = None,
    progress: bool = False,
) -> ImportReport:
    """Read the first sheet of a workbook and run the import over it.

    Raises:
        WorkbookReadError: the bytes are not a readable workbook
        EmptySheetError: the first sheet has no data rows
    """
    df = read_first_sheet(data)
    rows = extract_rows(df, aliases)
    return run_import(
        rows,
        vehicles,
        persist,
        source=source,
        error_log=error_log,
        progress=progress,
    )
