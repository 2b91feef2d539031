from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Row progress display with tqdm (TTY only).

In non-TTY environments (CI, HTTP workers) no bar is created so that logs are
not spammed with ANSI control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and a progress bar should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress bar over spreadsheet rows."""

    def __init__(self, total_rows: int, *, description: str = "Importing rows", enabled: bool = True) -> None:
        """Initialize progress tracker.

        Args:
            total_rows: Number of rows that will be processed
            description: Description for the progress bar
            enabled: Caller opt-in; the bar is still suppressed without a TTY
        """
        self.total_rows = total_rows
        self.description = description
        self.processed = 0
        self.failed = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, success: bool = True) -> None:
        """Record one finished row and refresh the counters."""
        if success:
            self.processed += 1
        else:
            self.failed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(ok=self.processed, errors=self.failed)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
