"""
Progress reporting for FirePM analyses.

Provides a callback-based progress system that works from both Python scripts
and GUI applications. Progress is reported via a simple (current, total) callback,
one step per simulation run processed.
"""

import sys
from typing import Callable, Optional


class AnalysisCancelled(Exception):
    """Raised when an analysis is cancelled by the user."""

    pass


class ProgressReporter:
    """Wraps a ``(current, total)`` callback with counting and throttling.

    Tracks the number of processed runs and fires the callback at most once
    every *update_every* advances.

    Args:
        total: Total number of steps.
        callback: Function called as ``callback(current, total)`` on each
            (throttled) update.
        update_every: Fire the callback at most once per this many advances.
            Defaults to ``max(1, total // 100)``.
        cancel_check: Optional callable; when it returns ``True`` the next
            ``advance`` raises ``AnalysisCancelled``.
    """

    def __init__(
        self,
        total: int,
        callback: Callable[[int, int], None],
        update_every: Optional[int] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ):
        self.total = total
        self._callback = callback
        self._current = 0
        self._cancel_check = cancel_check
        self.update_every = update_every if update_every is not None else max(1, total // 100)

    @property
    def current(self) -> int:
        return self._current

    def start(self):
        """Signal the beginning of the analysis (fires an initial 0/total update)."""
        self._current = 0
        self._callback(0, self.total)

    def advance(self, n: int = 1):
        """Advance the counter by *n* steps, firing the callback when due."""
        if self._cancel_check is not None and self._cancel_check():
            raise AnalysisCancelled(f"Analysis cancelled after {self._current} of {self.total} runs")
        self._current += n
        if self._current >= self.total or self._current % self.update_every == 0:
            self._callback(self._current, self.total)

    def finish(self):
        """Signal completion (fires a final total/total update if not already there)."""
        if self._current < self.total:
            self._current = self.total
            self._callback(self.total, self.total)


class PrintReporter:
    """Console progress reporter, prints ``\\rProgress:  45.0% (9/20 runs)``."""

    def __call__(self, current: int, total: int):
        if total <= 0:
            return
        pct = 100.0 * current / total
        sys.stderr.write(f"\rProgress: {pct:5.1f}% ({current}/{total} runs)")
        sys.stderr.flush()
        if current >= total:
            sys.stderr.write("\n")
            sys.stderr.flush()


class TqdmReporter:
    """Optional tqdm-based progress reporter (lazy import).

    Usage::

        from firepm.progress import TqdmReporter
        study.analyze(progress_callback=TqdmReporter())
    """

    def __init__(self, **tqdm_kwargs):
        self._tqdm_kwargs = tqdm_kwargs
        self._bar = None

    def __call__(self, current: int, total: int):
        from tqdm import tqdm

        if self._bar is None:
            self._bar = tqdm(total=total, unit="run", **self._tqdm_kwargs)

        delta = current - self._bar.n
        if delta > 0:
            self._bar.update(delta)

        if current >= total:
            self._bar.close()
            self._bar = None
