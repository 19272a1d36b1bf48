"""Training algorithms for NeuralNet and the stack around them."""
from .budget import CancellationToken, TrainingBudget, TrainingStatus
from .objectives import mean_squared_error, validate_examples
from .reporting import ConsoleReporter, TrainingReport
from .trainer import (
    TrainingResult,
    error_distribution_training,
    hill_climb_training,
    train_error_distribution,
)

__all__ = [
    "CancellationToken",
    "ConsoleReporter",
    "TrainingBudget",
    "TrainingReport",
    "TrainingResult",
    "TrainingStatus",
    "error_distribution_training",
    "hill_climb_training",
    "mean_squared_error",
    "train_error_distribution",
    "validate_examples",
]
