"""Progress observations emitted by training loops, and a console printer for them."""
from dataclasses import dataclass


@dataclass(frozen=True)
class TrainingReport:
    """One observation per training iteration."""

    iteration: int
    loss: float
    best_loss: float
    improved: bool


class ConsoleReporter:
    """
    Print training progress to stdout.

    Improvements are always printed; plain loss lines only every ``every`` iterations.
    """

    def __init__(self, every: int = 1, quiet: bool = False):
        if every < 1:
            raise ValueError(f"every must be at least 1, got {every}")
        self.every = every
        self.quiet = quiet

    def __call__(self, report: TrainingReport) -> None:
        if self.quiet:
            return
        if report.improved:
            print(f"({report.iteration}) Best Loss: {report.best_loss}")
        elif report.iteration % self.every == 0:
            print(f"({report.iteration}) Loss: {report.loss}")
