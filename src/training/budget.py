"""Stopping conditions for training loops that may never converge on their own."""
import time
from enum import Enum
from typing import Callable, Optional


class TrainingStatus(Enum):
    CONVERGED = "converged"
    BUDGET_EXHAUSTED = "budget_exhausted"
    CANCELLED = "cancelled"
    DIVERGED = "diverged"


class CancellationToken:
    """Flag a running training loop checks before every iteration."""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class TrainingBudget:
    """
    Iteration and wall-clock limits for a training loop, plus an optional cancellation token.

    Every limit is optional; a budget with none of them never stops a loop.
    """

    def __init__(self, max_iterations: Optional[int] = None, max_seconds: Optional[float] = None,
                 cancel_token: Optional[CancellationToken] = None,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            max_iterations: Stop once this many iterations have run.
            max_seconds: Stop once this much time has passed since start().
            cancel_token: Stop as soon as the token is cancelled.
            clock: Monotonic time source in seconds.
        """
        if max_iterations is not None and max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")
        if max_seconds is not None and max_seconds < 0:
            raise ValueError(f"max_seconds must be non-negative, got {max_seconds}")
        self.max_iterations = max_iterations
        self.max_seconds = max_seconds
        self.cancel_token = cancel_token
        self.clock = clock
        self._started_at = None

    def start(self) -> None:
        """Begin the wall-clock window."""
        self._started_at = self.clock()

    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self.clock() - self._started_at

    def check(self, iterations: int) -> Optional[TrainingStatus]:
        """
        Returns:
            None while training may continue, otherwise the status to stop with.
        """
        if self.cancel_token is not None and self.cancel_token.cancelled:
            return TrainingStatus.CANCELLED
        if self.max_iterations is not None and iterations >= self.max_iterations:
            return TrainingStatus.BUDGET_EXHAUSTED
        if self.max_seconds is not None and self.elapsed() >= self.max_seconds:
            return TrainingStatus.BUDGET_EXHAUSTED
        return None
