"""Labelled example handling and the squared-error loss."""
from typing import Sequence, Tuple, Union

import numpy as np

from network.errors import ShapeError
from network.neural_net import NeuralNet

Matrix = Union[Sequence[Sequence[float]], np.ndarray]


def validate_examples(network: NeuralNet, examples: Matrix, targets: Matrix) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert examples and targets to 2D float arrays and check them against the network.

    Raises:
        ValueError: If there are no examples.
        ShapeError: If the counts differ or a row has the wrong length.
    """
    examples = np.asarray(examples, dtype=np.float64)
    targets = np.asarray(targets, dtype=np.float64)

    if examples.ndim == 0 or examples.shape[0] == 0:
        raise ValueError("At least one training example is required")
    if examples.ndim != 2 or targets.ndim != 2:
        raise ShapeError(
            f"Examples and targets must be 2D, got shapes {examples.shape} and {targets.shape}"
        )
    if examples.shape[0] != targets.shape[0]:
        raise ShapeError(f"Got {examples.shape[0]} examples but {targets.shape[0]} targets")
    if examples.shape[1] != network.input_size:
        raise ShapeError(f"Examples have {examples.shape[1]} features, network expects {network.input_size}")
    if targets.shape[1] != network.output_size:
        raise ShapeError(f"Targets have {targets.shape[1]} values, network outputs {network.output_size}")

    return examples, targets


def mean_squared_error(network: NeuralNet, examples: Matrix, targets: Matrix) -> float:
    """Sum of squared output errors per example, averaged over examples."""
    examples, targets = validate_examples(network, examples, targets)
    loss = 0.0
    for features, labels in zip(examples, targets):
        prediction = network.predict(features)
        loss += float(np.sum((labels - prediction) ** 2))
    return loss / len(examples)
