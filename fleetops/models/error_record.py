from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .row_error import RowError

"""ErrorRecord model for the JSON Lines import error log.

Supports row=-1 as a sentinel for file-level errors where no specific
spreadsheet row applies (unreadable workbook, empty sheet).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Uploaded workbook name
        sheet: Sheet name within the workbook
        row: Spreadsheet row number. -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: User-facing description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_row_error(file: str, sheet: str, error: RowError) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            sheet=sheet,
            row=error.row_number,
            error_type=error.kind.value,
            message=error.message,
        )

    def to_json_line(self) -> str:
        # asdict keeps the key set fixed
        return json.dumps(asdict(self), ensure_ascii=False)
