"""Process-wide random generator shared by every randomized operation."""
from typing import Optional

import numpy as np

_generator = np.random.default_rng()


def get_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Return ``rng`` if given, otherwise the process-wide generator."""
    if rng is not None:
        return rng
    return _generator


def seed(value: Optional[int] = None) -> np.random.Generator:
    """
    Reseed the process-wide generator.

    Args:
        value: Seed for the new generator. None draws fresh entropy from the OS.

    Returns:
        The new process-wide generator.
    """
    global _generator
    _generator = np.random.default_rng(value)
    return _generator
