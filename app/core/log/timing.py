"""Timing helpers to log the duration of backend and provider round trips."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter
from typing import Iterator, Optional


@dataclass
class _Timer:
    label: str
    logger: logging.Logger
    level: int
    unit: str
    slow_after: Optional[float] = None
    count: int = 0
    start: float = field(default_factory=perf_counter)

    def add(self, amount: int = 1) -> None:
        self.count += amount

    @property
    def elapsed(self) -> float:
        return perf_counter() - self.start

    def _describe(self, elapsed: float) -> str:
        suffix = f" ({self.count:,} {self.unit})" if self.count else ""
        return f"{self.label} completed in {elapsed:.2f}s{suffix}"

    def finish(self, success: bool = True) -> None:
        elapsed = self.elapsed
        if not success:
            self.logger.error("%s failed after %.2fs", self.label, elapsed)
        elif self.slow_after is not None and elapsed > self.slow_after:
            self.logger.warning("%s (slow, threshold %.1fs)", self._describe(elapsed), self.slow_after)
        else:
            self.logger.log(self.level, self._describe(elapsed))


@contextmanager
def timeit(
    label: str,
    *,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
    unit: str = "rows",
    slow_after: Optional[float] = None,
) -> Iterator[_Timer]:
    """Log how long the block took.

    Args:
        label: Description of the operation being timed
        logger: Logger instance to use (defaults to "financeia.timer")
        level: Logging level for the timing message
        unit: Unit reported next to the counter (e.g., "rows", "messages")
        slow_after: Seconds after which the message is raised to WARNING
    """
    timer = _Timer(
        label=label,
        logger=logger or logging.getLogger("financeia.timer"),
        level=level,
        unit=unit,
        slow_after=slow_after,
    )
    try:
        yield timer
    except Exception:
        timer.finish(success=False)
        raise
    timer.finish(success=True)
