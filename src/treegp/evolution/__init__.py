"""
Genetic operator engine for tree-based genetic programming.

Key components:
- Individual: A program made of one tree per branch (RPB plus ADFs)
- Operators: Random creation, subtree crossover, swap and shrink mutation
- OperatorConfig: Creation, crossover and mutation settings
- Population helpers: Diversity, best/worst lookup, statistics
- Checkpointing: Saving and loading populations

Example usage:
    from treegp.core import NodeSet, AdfNodeSet
    from treegp.evolution import OperatorConfig, create_random_individual, subtree_crossover

    ns = NodeSet()
    ns.add_function(0, '+', 2)
    ns.add_terminal(1, 'x')
    node_sets = AdfNodeSet([ns])

    config = OperatorConfig()
    dad = create_random_individual(1, config, node_sets)
    mum = create_random_individual(1, config, node_sets)
    subtree_crossover([dad.copy(), mum.copy()], config.max_depth_for_crossover,
                      config.max_complexity)
"""

from .config import OperatorConfig
from .fitness import adjusted_fitness, validate_standard_fitness
from .individual import Individual, Heritage
from .operators import (
    create_random_individual,
    subtree_crossover,
    swap_mutation,
    shrink_mutation,
    mutate,
)
from .population import (
    seed_everything,
    compute_diversity,
    find_best,
    find_worst,
    get_population_stats,
)
from .checkpoint import save_checkpoint, load_checkpoint

__all__ = [
    # Core classes
    'Individual',
    'Heritage',
    'OperatorConfig',
    # Fitness
    'adjusted_fitness',
    'validate_standard_fitness',
    # Operators
    'create_random_individual',
    'subtree_crossover',
    'swap_mutation',
    'shrink_mutation',
    'mutate',
    # Population
    'seed_everything',
    'compute_diversity',
    'find_best',
    'find_worst',
    'get_population_stats',
    # Checkpointing
    'save_checkpoint',
    'load_checkpoint',
]
