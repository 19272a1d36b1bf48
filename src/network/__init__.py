"""Feed-forward network core: layers, networks and their random constructors."""
from .errors import ShapeError, DegenerateWeightError
from .neural_net import Layer, NeuralNet
from .rng import get_rng, seed

__all__ = ["Layer", "NeuralNet", "ShapeError", "DegenerateWeightError", "get_rng", "seed"]
