from __future__ import annotations

import logging
import math
import time
from collections.abc import Sequence
from datetime import date, datetime
from datetime import time as dt_time
from typing import Protocol

from ..db.repositories import RepositoryError
from ..models.restore import AccountingStats, RestoreCandidate, RestoreOptions, RestoreResult

"""Flypass accounted-status restoration.

Best-effort backfill of the `accounted` flag lost during a data migration.
Two modes:

- restore(): flag the oldest unaccounted records created before a cutoff
  until a target percentage of all records is accounted
- restore_by_date_pattern(): flag every unaccounted record created within an
  inclusive date range

Both are idempotent once their goal is met. Any storage error aborts the run
and is reported as success=False; the bulk update itself is a single
statement, so no partial update is left behind.
"""

logger = logging.getLogger(__name__)

DATE_PATTERN_SAMPLE_SIZE = 10


def compute_deficit(stats: AccountingStats, target_percentage: float) -> tuple[int, int]:
    """Return (target_accounted, deficit) for the given stats."""
    target = math.floor(stats.total * target_percentage / 100)
    return target, target - stats.accounted


class FlypassStore(Protocol):
    """
    Storage operations the restorer relies on; FlypassRepository implements them.
    """

    def stats(self) -> AccountingStats:
        ...

    def find_candidates(self, limit: int, threshold: date) -> list[RestoreCandidate]:
        ...

    def find_in_range(self, start: datetime, end: datetime) -> list[RestoreCandidate]:
        ...

    def mark_accounted(self, ids: Sequence[str]) -> int:
        ...


class AccountedStatusRestorer:
    """Runs the restoration against a FlypassStore."""

    def __init__(self, repository: FlypassStore) -> None:
        self.repository = repository

    def restore(self, options: RestoreOptions | None = None) -> RestoreResult:
        options = options or RestoreOptions()
        started = time.perf_counter()
        logger.info(
            "restore accounted status dry_run=%s target_percentage=%s date_threshold=%s",
            options.dry_run,
            options.target_percentage,
            options.date_threshold.isoformat(),
        )
        try:
            before = self.repository.stats()
            _log_stats("before", before)

            target, deficit = compute_deficit(before, options.target_percentage)
            logger.info("target=%d (%s%%) needed=%d", target, options.target_percentage, deficit)
            if deficit <= 0:
                logger.info("accounted target already reached, nothing to do")
                return RestoreResult(
                    success=True,
                    duration_seconds=time.perf_counter() - started,
                    records_processed=0,
                    message="No changes needed",
                    dry_run=options.dry_run,
                    stats_before=before,
                    stats_after=before,
                )

            candidates = self.repository.find_candidates(deficit, options.date_threshold)
            logger.info("candidates=%d", len(candidates))
            if not candidates:
                logger.warning("no candidates found below %s", options.date_threshold.isoformat())
                return RestoreResult(
                    success=False,
                    duration_seconds=time.perf_counter() - started,
                    records_processed=0,
                    message="No candidates available",
                    dry_run=options.dry_run,
                    stats_before=before,
                    stats_after=before,
                )

            processed = self._apply(candidates, options.dry_run, options.sample_size)
            after = self.repository.stats()
            _log_stats("after", after)
        except RepositoryError as e:
            logger.error("restore failed: %s", e)
            return RestoreResult(
                success=False,
                duration_seconds=time.perf_counter() - started,
                error=str(e),
                dry_run=options.dry_run,
            )

        return RestoreResult(
            success=True,
            duration_seconds=time.perf_counter() - started,
            records_processed=processed,
            dry_run=options.dry_run,
            stats_before=before,
            stats_after=after,
            sample=candidates[: options.sample_size],
        )

    def restore_by_date_pattern(self, start_date: date, end_date: date, dry_run: bool = True) -> RestoreResult:
        """Flag every unaccounted record created between start_date and end_date (inclusive)."""
        started = time.perf_counter()
        if end_date < start_date:
            raise ValueError(f"end_date {end_date} is before start_date {start_date}")
        start = datetime.combine(start_date, dt_time.min)
        end = datetime.combine(end_date, dt_time.max)
        logger.info(
            "restore by date range %s..%s dry_run=%s", start_date.isoformat(), end_date.isoformat(), dry_run
        )
        try:
            before = self.repository.stats()
            _log_stats("before", before)
            candidates = self.repository.find_in_range(start, end)
            logger.info("candidates=%d", len(candidates))
            if not candidates:
                logger.warning("no unaccounted records in range")
                return RestoreResult(
                    success=False,
                    duration_seconds=time.perf_counter() - started,
                    records_processed=0,
                    message="No candidates in range",
                    dry_run=dry_run,
                    stats_before=before,
                    stats_after=before,
                )
            processed = self._apply(candidates, dry_run, DATE_PATTERN_SAMPLE_SIZE)
            after = self.repository.stats()
            _log_stats("after", after)
        except RepositoryError as e:
            logger.error("restore by date range failed: %s", e)
            return RestoreResult(
                success=False,
                duration_seconds=time.perf_counter() - started,
                error=str(e),
                dry_run=dry_run,
            )

        return RestoreResult(
            success=True,
            duration_seconds=time.perf_counter() - started,
            records_processed=processed,
            dry_run=dry_run,
            stats_before=before,
            stats_after=after,
            sample=candidates[:DATE_PATTERN_SAMPLE_SIZE],
        )

    def _apply(self, candidates: list[RestoreCandidate], dry_run: bool, sample_size: int) -> int:
        if dry_run:
            logger.info("dry-run: %d records would be flagged as accounted", len(candidates))
            for i, c in enumerate(candidates[:sample_size], start=1):
                logger.info("  %d. %s", i, c.describe())
            if len(candidates) > sample_size:
                logger.info("  ... and %d more", len(candidates) - sample_size)
            return len(candidates)

        updated = self.repository.mark_accounted([c.id for c in candidates])
        logger.info("flagged %d records as accounted", updated)
        return updated


def _log_stats(label: str, stats: AccountingStats) -> None:
    logger.info(
        "%s: total=%d accounted=%d (%.2f%%) pending=%d",
        label,
        stats.total,
        stats.accounted,
        stats.percentage_accounted,
        stats.not_accounted,
    )
