import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded generator so every randomized test is repeatable."""
    return np.random.default_rng(0)


# target = 5 * x + 5
LINEAR_EXAMPLES = [[3.0], [4.0], [5.0], [6.0]]
LINEAR_TARGETS = [[20.0], [25.0], [30.0], [35.0]]


@pytest.fixture
def linear_data():
    return LINEAR_EXAMPLES, LINEAR_TARGETS
