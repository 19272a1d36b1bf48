"""Training algorithms: proportional error distribution and random hill-climbing."""
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np

from network.neural_net import Layer, NeuralNet
from network.rng import get_rng
from .budget import TrainingBudget, TrainingStatus
from .objectives import Matrix, mean_squared_error, validate_examples
from .reporting import TrainingReport

Reporter = Callable[[TrainingReport], None]


@dataclass
class TrainingResult:
    """Outcome of a training loop."""

    network: NeuralNet
    loss: float
    iterations: int
    status: TrainingStatus

    @property
    def converged(self) -> bool:
        return self.status is TrainingStatus.CONVERGED


def error_distribution_training(network: NeuralNet, examples: Matrix, targets: Matrix,
                                learning_rate: float = 1.0, strict: bool = False) -> NeuralNet:
    """
    Run one full-batch error-distribution step and return the updated network.

    The mean output error (target - prediction) is split over the last layer's edges in
    proportion to their weights, summed per input node, and handed down as the error of
    the layer below, all the way to the first layer. Every layer is then nudged by its
    share times ``learning_rate``. This is a heuristic, not gradient descent.

    Args:
        network: Network to update. It is not modified.
        examples: One feature row per example.
        targets: One target row per example.
        learning_rate: Multiplier applied to every nudge.
        strict: Raise DegenerateWeightError on zero total incoming weight instead of
                skipping that node.

    Returns:
        A new network with the nudged layers.
    """
    examples, targets = validate_examples(network, examples, targets)
    layers = network.layers
    num_layers = len(layers)

    # Average (target - prediction) per output node; a bigger prediction gives a negative error
    output_error = np.zeros(network.output_size)
    for features, labels in zip(examples, targets):
        output_error += labels - network.predict(features)
    output_error /= len(examples)

    edge_deltas: List[Optional[np.ndarray]] = [None] * num_layers
    edge_deltas[-1] = layers[-1].get_desired_nudges(output_error, strict=strict)

    for i in range(num_layers - 2, -1, -1):
        node_errors = layers[i + 1].get_input_node_errors(edge_deltas[i + 1])
        edge_deltas[i] = layers[i].get_desired_nudges(node_errors, strict=strict)

    return NeuralNet([Layer.nudged_layer(layer, deltas, learning_rate)
                      for layer, deltas in zip(layers, edge_deltas)])


def train_error_distribution(network: NeuralNet, examples: Matrix, targets: Matrix,
                             learning_rate: float, loss_target: float,
                             budget: Optional[TrainingBudget] = None,
                             reporter: Optional[Reporter] = None,
                             strict: bool = False) -> TrainingResult:
    """
    Repeat error_distribution_training until the loss drops below ``loss_target``.

    The loss is measured before each step. The loop also stops when the loss stops being
    finite (the update rule has no bound on weight growth) or when ``budget`` runs out.

    Returns:
        The last network, its loss, the number of steps taken and why the loop stopped.
    """
    examples, targets = validate_examples(network, examples, targets)
    budget = budget if budget is not None else TrainingBudget()
    budget.start()

    best_loss = math.inf
    iterations = 0
    while True:
        loss = mean_squared_error(network, examples, targets)
        improved = loss < best_loss
        if improved:
            best_loss = loss
        if reporter is not None:
            reporter(TrainingReport(iterations, loss, best_loss, improved))

        if not math.isfinite(loss):
            status = TrainingStatus.DIVERGED
            break
        if loss < loss_target:
            status = TrainingStatus.CONVERGED
            break
        stop = budget.check(iterations)
        if stop is not None:
            status = stop
            break

        network = error_distribution_training(network, examples, targets, learning_rate, strict=strict)
        iterations += 1

    return TrainingResult(network, loss, iterations, status)


def hill_climb_training(network: NeuralNet, examples: Matrix, targets: Matrix,
                        loss_target: float, max_change_amount: float,
                        budget: Optional[TrainingBudget] = None,
                        reporter: Optional[Reporter] = None,
                        rng: Optional[np.random.Generator] = None,
                        change_chance: float = 1.0) -> TrainingResult:
    """
    Greedy random search over weights.

    Each iteration perturbs the weights of the best network so far by draws from
    [-max_change_amount, +max_change_amount] and keeps the candidate only if its mean
    squared error beats the best loss. The best loss starts at infinity, so the first
    candidate is always kept.

    Without a budget the loop runs until the best loss falls below ``loss_target``, which
    may be never.

    Args:
        change_chance: Probability that any one weight is perturbed in a candidate.

    Returns:
        The best network found, its loss, the number of candidates tried and why the loop stopped.
    """
    if not 0.0 <= change_chance <= 1.0:
        raise ValueError(f"change_chance must be between 0 and 1, got {change_chance}")
    examples, targets = validate_examples(network, examples, targets)
    budget = budget if budget is not None else TrainingBudget()
    rng = get_rng(rng)
    budget.start()

    best_network = network
    best_loss = math.inf
    iterations = 0
    while True:
        if best_loss < loss_target:
            status = TrainingStatus.CONVERGED
            break
        stop = budget.check(iterations)
        if stop is not None:
            status = stop
            break

        candidate = NeuralNet.similar_network(best_network, max_change_amount, rng=rng,
                                              change_chance=change_chance)
        loss = mean_squared_error(candidate, examples, targets)
        iterations += 1

        improved = loss < best_loss
        if improved:
            best_network = candidate
            best_loss = loss
        if reporter is not None:
            reporter(TrainingReport(iterations, loss, best_loss, improved))

    return TrainingResult(best_network, best_loss, iterations, status)
