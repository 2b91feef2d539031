from __future__ import annotations

from ..models.fuel_purchase import ImportReport
from ..models.restore import RestoreResult

"""SUMMARY line rendering for the CLI.

Formats:
    SUMMARY import rows={n} processed={n} errors={n}
    SUMMARY restore success={bool} dry_run={bool} records={n} elapsed_sec={s}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # avoid scientific notation for tiny values
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.2f}"


def render_import_summary(report: ImportReport) -> str:
    """Render the SUMMARY line of a fuel-purchase import.

    Examples:
        >>> render_import_summary(ImportReport(total_rows=3, processed=2, errors=1))
        'SUMMARY import rows=3 processed=2 errors=1'
    """
    return (
        f"SUMMARY import rows={report.total_rows} "
        f"processed={report.processed} "
        f"errors={report.errors}"
    )


def render_restore_summary(result: RestoreResult) -> str:
    records = result.records_processed if result.records_processed is not None else 0
    return (
        f"SUMMARY restore success={str(result.success).lower()} "
        f"dry_run={str(result.dry_run).lower()} "
        f"records={records} "
        f"elapsed_sec={_format_seconds(result.duration_seconds)}"
    )
