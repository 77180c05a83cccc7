"""
Progress reporting for batch operations (build, update).

A build over thousands of files should leave a readable trail in the log
file, not one line per file. ProgressTracker writes an entry each time
another ``log_interval_percent`` of the files is done, or after
``log_interval_seconds`` of silence, plus one completion entry. Files that
finished with per-file errors are counted separately so a run that "worked"
but could not extract half the workspace is visible at a glance.
"""

import logging
import time

logger = logging.getLogger("scout.progress")


class ProgressTracker:
    """
    Periodic progress logging for a known number of files.

    Example:
        tracker = ProgressTracker(total=len(entries), desc="Indexing")
        for batch in batches:
            results = await process(batch)
            tracker.update(len(batch), failed=sum(1 for r in results if r.errors))
    """

    def __init__(
        self,
        total: int,
        desc: str = "Processing",
        log_interval_percent: float = 10.0,
        log_interval_seconds: float = 30.0,
    ):
        self.total = total
        self.desc = desc
        self.log_interval_percent = log_interval_percent
        self.log_interval_seconds = log_interval_seconds
        self.current = 0
        self.failed = 0
        self.start_time = time.monotonic()
        self.last_log_time = self.start_time
        self.last_percentage = 0.0
        self._finished = False

    def update(self, n: int = 1, failed: int = 0) -> None:
        """Record n more processed files, ``failed`` of them with errors."""
        self.current += n
        self.failed += failed
        self._emit()

    @staticmethod
    def format_time(seconds: float) -> str:
        """Format seconds as e.g. '45s', '1m 30s', '2h 5m'."""
        if seconds < 60:
            return f"{seconds:.0f}s"
        if seconds < 3600:
            return f"{int(seconds // 60)}m {int(seconds % 60)}s"
        return f"{int(seconds // 3600)}h {int((seconds % 3600) // 60)}m"

    def _counts(self) -> str:
        counts = f"{self.current}/{self.total} files"
        if self.failed:
            counts += f", {self.failed} with errors"
        return counts

    def _emit(self) -> None:
        if self._finished or self.current <= 0:
            return

        now = time.monotonic()
        elapsed = now - self.start_time

        if self.current >= self.total:
            logger.info(f"{self.desc}: 100% complete ({self._counts()}) in {self.format_time(elapsed)}")
            self._finished = True
            return

        percent = (self.current / self.total) * 100
        if (percent - self.last_percentage) < self.log_interval_percent and (
            now - self.last_log_time
        ) <= self.log_interval_seconds:
            return

        rate = self.current / elapsed if elapsed > 0 else 0
        eta = (self.total - self.current) / rate if rate > 0 else 0
        logger.info(f"{self.desc}: {percent:.0f}% complete ({self._counts()}). ETA: {self.format_time(eta)}")
        self.last_percentage = percent
        self.last_log_time = now

    def finish(self) -> None:
        """Force the completion entry, e.g. after an early exit."""
        if not self._finished:
            self.current = max(self.current, self.total)
            self._emit()
