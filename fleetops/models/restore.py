from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

"""Models for the Flypass accounted-status restoration.

The percentage target and the date cutoff are plain configuration values;
nothing in the restorer assumes a particular business rule behind them.
"""

__all__ = [
    "DEFAULT_TARGET_PERCENTAGE",
    "DEFAULT_DATE_THRESHOLD",
    "RestoreOptions",
    "AccountingStats",
    "RestoreCandidate",
    "RestoreResult",
]

DEFAULT_TARGET_PERCENTAGE = 85.0
DEFAULT_DATE_THRESHOLD = date(2024, 12, 1)


@dataclass(frozen=True)
class RestoreOptions:
    dry_run: bool = True
    target_percentage: float = DEFAULT_TARGET_PERCENTAGE
    date_threshold: date = DEFAULT_DATE_THRESHOLD
    sample_size: int = 5

    def __post_init__(self) -> None:
        if not 0 <= self.target_percentage <= 100:
            raise ValueError(f"target_percentage must be within [0, 100]: {self.target_percentage}")
        if self.sample_size < 0:
            raise ValueError(f"sample_size must be >= 0: {self.sample_size}")


@dataclass(frozen=True)
class AccountingStats:
    total: int
    accounted: int

    @property
    def not_accounted(self) -> int:
        return self.total - self.accounted

    @property
    def percentage_accounted(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(self.accounted / self.total * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "accounted": self.accounted,
            "notAccounted": self.not_accounted,
            "percentageAccounted": f"{self.percentage_accounted:.2f}",
        }


@dataclass(frozen=True)
class RestoreCandidate:
    """A toll-payment record selected for flagging (read-only projection)."""
    id: str
    document_number: str | None
    toll_name: str | None
    total: float
    created_at: datetime

    def describe(self) -> str:
        return f"{self.document_number} - {self.toll_name} - ${self.total:,.0f} - {self.created_at.date().isoformat()}"


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a restore run.

    records_processed is the candidate count in dry-run mode and the number of
    rows actually updated otherwise.
    """
    success: bool
    duration_seconds: float
    records_processed: int | None = None
    message: str | None = None
    error: str | None = None
    dry_run: bool = False
    stats_before: AccountingStats | None = None
    stats_after: AccountingStats | None = None
    sample: list[RestoreCandidate] = field(default_factory=list)

    @property
    def duration(self) -> str:
        return f"{self.duration_seconds:.2f} segundos"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "duration": self.duration, "dryRun": self.dry_run}
        if self.records_processed is not None:
            out["recordsProcessed"] = self.records_processed
        if self.message is not None:
            out["message"] = self.message
        if self.error is not None:
            out["error"] = self.error
        if self.stats_before is not None:
            out["statsBefore"] = self.stats_before.to_dict()
        if self.stats_after is not None:
            out["statsAfter"] = self.stats_after.to_dict()
        return out
