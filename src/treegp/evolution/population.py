"""
Population-level helpers built on the individual comparison operations.

Handles:
- Seeding the random sources
- Structural diversity (hash buckets confirmed by structural equality)
- Best/worst lookup and summary statistics
"""

import random
from typing import Any, Dict, List, Optional

import numpy as np

from .individual import Individual


def seed_everything(seed: Optional[int]) -> random.Random:
    """
    Seed the module-level random sources and return a dedicated generator.

    Operators accept the returned generator as their `rng` argument.
    """
    if seed is not None:
        random.seed(seed)
        np.random.seed(seed)
    return random.Random(seed)


def compute_diversity(population: List[Individual]) -> float:
    """
    Fraction of structurally distinct individuals in the population.

    Individuals are bucketed by `structural_hash()`; only members of the
    same bucket are compared with `structurally_equals()`.

    Returns:
        Value in (0, 1], or 0.0 for an empty population
    """
    if not population:
        return 0.0

    buckets: Dict[int, List[Individual]] = {}
    n_unique = 0
    for individual in population:
        bucket = buckets.setdefault(individual.structural_hash(), [])
        if not any(individual.structurally_equals(other) for other in bucket):
            bucket.append(individual)
            n_unique += 1

    return n_unique / len(population)


def find_best(population: List[Individual]) -> Optional[Individual]:
    """Best individual by standard fitness, smaller programs winning ties."""
    best = None
    for individual in population:
        if best is None or individual.better_than(best):
            best = individual
    return best


def find_worst(population: List[Individual]) -> Optional[Individual]:
    """Individual with the largest standard fitness."""
    if not population:
        return None
    return max(population, key=lambda ind: ind.std_fitness)


def get_population_stats(population: List[Individual]) -> Dict[str, Any]:
    """
    Compute statistics about the population.

    Args:
        population: List of individuals

    Returns:
        Dictionary with population statistics
    """
    if not population:
        return {'size': 0}

    complexities = [ind.complexity for ind in population]
    depths = [ind.max_depth for ind in population]
    fitnesses = [ind.std_fitness for ind in population]
    best = find_best(population)

    return {
        'size': len(population),
        'complexity_range': (min(complexities), max(complexities)),
        'mean_complexity': float(np.mean(complexities)),
        'std_complexity': float(np.std(complexities)),
        'depth_range': (min(depths), max(depths)),
        'mean_depth': float(np.mean(depths)),
        'best_fitness': best.std_fitness,
        'mean_fitness': float(np.mean(fitnesses)),
        'worst_fitness': max(fitnesses),
        'mean_adjusted_fitness': float(np.mean([ind.adj_fitness for ind in population])),
        'diversity': compute_diversity(population),
    }
