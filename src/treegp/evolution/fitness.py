"""
Fitness conventions.

Standard fitness is computed by a user-supplied evaluator: non-negative,
lower is better, optimal at zero. Adjusted fitness maps it into (0, 1]
with higher being better, for probability-weighted and greedy selection.
"""

import math

from ..core.errors import InvalidArgumentError


def validate_standard_fitness(value: float) -> float:
    """Return `value` as a float, rejecting negative or non-finite scores."""
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise InvalidArgumentError(f"Standard fitness must be finite, got {value}")
    if value < 0.0:
        raise InvalidArgumentError(f"Standard fitness must be non-negative, got {value}")
    return value


def adjusted_fitness(std_fitness: float) -> float:
    """
    Convert standard fitness to adjusted fitness.

    Examples:
        adjusted_fitness(0.0) -> 1.0
        adjusted_fitness(3.0) -> 0.25
    """
    return 1.0 / (1.0 + std_fitness)
