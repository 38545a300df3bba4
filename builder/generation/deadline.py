"""Wall-clock budget of a single build request."""

from collections.abc import Callable
import time


class DeadlineGuard:
    """Tracks elapsed time against a hard budget minus a trailing margin.

    Once `should_continue()` turns false no new model call or verification
    round may start; the margin is what remains to persist results before
    the host terminates the request.
    """

    def __init__(
        self,
        budget: float = 300.0,
        margin: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        if budget <= 0:
            raise ValueError("budget must be positive")
        if not 0 <= margin < budget:
            raise ValueError("margin must be non-negative and smaller than budget")
        self.budget = budget
        self.margin = margin
        self._clock = clock
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        """Seconds left before the cutoff (never negative)."""
        return max(0.0, self.budget - self.margin - self.elapsed)

    def should_continue(self) -> bool:
        return self.elapsed < self.budget - self.margin
