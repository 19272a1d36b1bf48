from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Union
import numpy as np

from .errors import ShapeError, DegenerateWeightError
from .rng import get_rng

Vector = Union[Sequence[float], np.ndarray]


def _as_vector(values: Vector, expected_length: int, what: str) -> np.ndarray:
    """Convert ``values`` to a 1D float64 array of ``expected_length`` or raise ShapeError."""
    array = np.asarray(values, dtype=np.float64)
    if array.ndim != 1:
        raise ShapeError(f"{what} must be a 1D vector, got shape {array.shape}")
    if array.shape[0] != expected_length:
        raise ShapeError(f"{what} has length {array.shape[0]}, expected {expected_length}")
    return array


def _is_count(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _weight_bounds(weight_range: Sequence[float]) -> tuple:
    try:
        bounds = [float(value) for value in weight_range]
    except (TypeError, ValueError):
        raise ValueError(f"weight_range must hold exactly two numbers, got {weight_range!r}") from None
    if len(bounds) != 2:
        raise ValueError(f"weight_range must hold exactly two numbers, got {weight_range!r}")
    return min(bounds), max(bounds)


class NeuralNet:
    """
    An ordered stack of dense layers, excluding the notional input layer.

    The first layer's input count is the network's input size. Every layer but the
    last applies the rectifier; the last layer is linear.
    """

    def __init__(self, layers: Sequence['Layer']):
        """
        Args:
            layers: Layers in evaluation order. Adjacent layers must agree on size.

        Raises:
            ShapeError: If there are no layers or two adjacent layers disagree.
        """
        self.layers = tuple(layers)
        if not self.layers:
            raise ShapeError("A network needs at least one layer")

        for i in range(len(self.layers) - 1):
            if self.layers[i].output_count != self.layers[i + 1].input_count:
                raise ShapeError(
                    f"Layer {i} outputs {self.layers[i].output_count} values but layer {i + 1} "
                    f"expects {self.layers[i + 1].input_count} inputs"
                )

    @property
    def input_size(self) -> int:
        return self.layers[0].input_count

    @property
    def output_size(self) -> int:
        return self.layers[-1].output_count

    @property
    def num_layers(self) -> int:
        return len(self.layers)

    @property
    def shape(self) -> List[int]:
        """Input size followed by each layer's output size."""
        return [self.input_size] + [layer.output_count for layer in self.layers]

    @staticmethod
    def random_network(shape: Sequence[int], weight_range: Sequence[float],
                       rng: Optional[np.random.Generator] = None) -> 'NeuralNet':
        """
        Build a network with uniformly random weights.

        Args:
            shape: Layer sizes from input to output, at least two positive entries.
            weight_range: Two numbers bounding every initial weight and bias.
            rng: Generator to draw from. Defaults to the process-wide generator.

        Returns:
            A network whose hidden layers rectify and whose output layer is linear.
        """
        shape = list(shape)
        if len(shape) < 2:
            raise ShapeError(f"shape needs an input size and at least one layer size, got {shape}")
        for size in shape:
            if not _is_count(size) or size < 1:
                raise ShapeError(f"Every layer size must be a positive integer, got {shape}")
        _weight_bounds(weight_range)

        rng = get_rng(rng)
        layers = []
        for i in range(len(shape) - 1):
            is_output_layer = (i == len(shape) - 2)
            layers.append(Layer.random_layer(shape[i], shape[i + 1], weight_range,
                                             use_activation=not is_output_layer, rng=rng))
        return NeuralNet(layers)

    @staticmethod
    def similar_network(network: 'NeuralNet', max_change_amount: float,
                        rng: Optional[np.random.Generator] = None,
                        change_chance: float = 1.0) -> 'NeuralNet':
        """
        Perturb the weights of every layer by independent draws from [-max, +max].
        Each weight is changed with probability ``change_chance``; 1.0 changes them all.
        """
        rng = get_rng(rng)
        return NeuralNet([Layer.similar_layer(layer, max_change_amount, rng=rng, change_chance=change_chance)
                          for layer in network.layers])

    def predict(self, input: Vector) -> np.ndarray:
        """
        Feed ``input`` through every layer in order.

        Raises:
            ShapeError: If ``input`` is not a vector of length ``input_size``.
        """
        result = _as_vector(input, self.input_size, "Network input")
        for layer in self.layers:
            result = layer.forward_propagate(result)
        return result

    def describe(self) -> Dict[str, object]:
        """Summary of the topology, used when inspecting a network from the console."""
        return {
            "input_size": self.input_size,
            "output_size": self.output_size,
            "num_layers": self.num_layers,
            "shape": self.shape,
            "layers": [
                {
                    "weights_shape": layer.weights.shape,
                    "use_activation": layer.use_activation,
                }
                for layer in self.layers
            ],
        }

    def __repr__(self) -> str:
        return f"NeuralNet(shape={self.shape})"


class Layer:
    """
    One affine transform with an optional rectifier.

    ``weights`` has shape (input_count + 1, output_count): row i < input_count holds the
    weights from input node i to every output node, and the last row holds the biases.
    Weights are copied on construction and kept read-only, so every update returns a new Layer.
    """

    def __init__(self, weights: Union[Sequence[Sequence[float]], np.ndarray], use_activation: bool = True):
        weights = np.array(weights, dtype=np.float64)
        if weights.ndim != 2:
            raise ShapeError(f"Layer weights must be 2D, got shape {weights.shape}")
        if weights.shape[0] < 1 or weights.shape[1] < 1:
            raise ShapeError(
                f"Layer weights need a bias row and at least one output column, got shape {weights.shape}"
            )
        weights.setflags(write=False)
        self._weights = weights
        self.use_activation = use_activation

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def biases(self) -> np.ndarray:
        return self._weights[-1]

    @property
    def input_count(self) -> int:
        return self._weights.shape[0] - 1

    @property
    def output_count(self) -> int:
        return self._weights.shape[1]

    @staticmethod
    def random_layer(input_count: int, output_count: int, weight_range: Sequence[float],
                     use_activation: bool = True, rng: Optional[np.random.Generator] = None) -> 'Layer':
        """
        Fill every weight and bias independently from U[min(weight_range), max(weight_range)].

        Args:
            input_count: Number of input nodes (may be zero, leaving only the bias row).
            output_count: Number of output nodes, at least one.
            weight_range: Two numbers bounding the draw, in either order.
            use_activation: Whether the layer rectifies its output.
            rng: Generator to draw from. Defaults to the process-wide generator.
        """
        if not _is_count(input_count) or not _is_count(output_count) or input_count < 0 or output_count < 1:
            raise ShapeError(f"Invalid layer size {input_count!r} -> {output_count!r}")
        low, high = _weight_bounds(weight_range)
        weights = get_rng(rng).uniform(low, high, (input_count + 1, output_count))
        return Layer(weights, use_activation)

    @staticmethod
    def similar_layer(layer: 'Layer', max_change_amount: float,
                      rng: Optional[np.random.Generator] = None,
                      change_chance: float = 1.0) -> 'Layer':
        """
        Copy ``layer`` with weights shifted by independent draws from
        [-max_change_amount, +max_change_amount]. The source layer is untouched.

        Args:
            layer: Layer to copy.
            max_change_amount: Largest absolute change to any one weight.
            rng: Generator to draw from. Defaults to the process-wide generator.
            change_chance: Probability that a given weight is changed at all (0.0 to 1.0).
        """
        if max_change_amount < 0:
            raise ValueError(f"max_change_amount must be non-negative, got {max_change_amount}")
        if not 0.0 <= change_chance <= 1.0:
            raise ValueError(f"change_chance must be between 0 and 1, got {change_chance}")

        rng = get_rng(rng)
        changes = rng.uniform(-max_change_amount, max_change_amount, layer.weights.shape)
        if change_chance < 1.0:
            mask = rng.random(layer.weights.shape) < change_chance
            changes = np.where(mask, changes, 0.0)
        return Layer(layer.weights + changes, layer.use_activation)

    @staticmethod
    def nudged_layer(layer: 'Layer', nudges: np.ndarray, learning_rate: float = 1.0) -> 'Layer':
        """Return a new layer with weights ``layer.weights + nudges * learning_rate``. No clamping."""
        nudges = np.asarray(nudges, dtype=np.float64)
        if nudges.shape != layer.weights.shape:
            raise ShapeError(f"Nudges have shape {nudges.shape}, expected {layer.weights.shape}")
        return Layer(layer.weights + nudges * learning_rate, layer.use_activation)

    def forward_propagate(self, input: Vector) -> np.ndarray:
        """
        Compute bias + input @ weights for every output node, rectified if the layer uses activation.
        """
        input = _as_vector(input, self.input_count, "Layer input")

        # node_j = 1 * bias_j + sum_i input_i * weight_ij
        result = input @ self._weights[:-1] + self._weights[-1]

        if self.use_activation:
            result = np.maximum(result, 0.0)

        return result

    def get_desired_nudges(self, error: Vector, strict: bool = False) -> np.ndarray:
        """
        Distribute each output node's error over its incoming edges (bias included),
        in proportion to each edge's share of the node's summed incoming weight:

            nudge_ij = (weight_ij / sum_k weight_kj) * error_j

        ``error`` is the desired direction (target - prediction), not a loss gradient, and
        the rectifier's derivative plays no part.

        Args:
            error: One value per output node.
            strict: Raise DegenerateWeightError when a node's incoming weights sum to exactly
                    zero. Otherwise that node's nudges are all zero.

        Returns:
            Nudge matrix with the same shape as ``weights``.
        """
        error = _as_vector(error, self.output_count, "Error vector")
        total_weight = self._weights.sum(axis=0)

        degenerate = total_weight == 0
        if strict and degenerate.any():
            raise DegenerateWeightError(np.flatnonzero(degenerate).tolist())

        shares = np.divide(self._weights, total_weight,
                           out=np.zeros_like(self._weights), where=~degenerate)
        return shares * error

    def get_input_node_errors(self, edge_deltas: np.ndarray, include_bias: bool = False) -> np.ndarray:
        """
        Sum a nudge matrix across output nodes to get one error per input node.

        Args:
            edge_deltas: Matrix shaped like ``weights``, usually from get_desired_nudges.
            include_bias: Keep the bias row's sum as a trailing element.

        Returns:
            Vector of length input_count, or input_count + 1 with the bias.
        """
        edge_deltas = np.asarray(edge_deltas, dtype=np.float64)
        if edge_deltas.shape != self._weights.shape:
            raise ShapeError(f"Edge deltas have shape {edge_deltas.shape}, expected {self._weights.shape}")
        node_errors = edge_deltas.sum(axis=1)
        if include_bias:
            return node_errors
        return node_errors[:-1]

    def __repr__(self) -> str:
        return (f"Layer(input_count={self.input_count}, output_count={self.output_count}, "
                f"use_activation={self.use_activation})")
