"""
Genetic operators: random creation, subtree crossover and mutation.

Crossover and mutation work in place on the individuals they are given;
the population manager is expected to pass copies of the selected parents.
Every operator takes an optional `random.Random` so runs can be reproduced.
"""

import logging
import random
from contextlib import ExitStack
from typing import Any, Callable, Optional, Sequence, Tuple

from ..core.errors import StructuralMismatchError
from ..core.gene import (
    DEFAULT_FUNCTION_PROBABILITY,
    Gene,
    GeneReference,
    select_function_node,
    select_function_or_terminal_node,
)
from ..core.node import AdfNodeSet, Node
from .config import OperatorConfig
from .individual import Individual

logger = logging.getLogger(__name__)


# =============================================================================
# Creation
# =============================================================================

def create_random_individual(
    n_branches: int,
    config: OperatorConfig,
    node_sets: AdfNodeSet,
    rng: Optional[random.Random] = None,
    evaluator: Optional[Callable[[Individual, Any], float]] = None,
    gene_factory: Optional[Callable[[Node], Gene]] = None,
) -> Individual:
    """
    Build a new individual with random trees.

    Uses the creation type and size limits for new trees from `config`.
    The result may exceed `config.max_complexity_for_new_trees`; callers
    that need the bound should check `complexity` and try again.
    """
    individual = Individual(n_branches, evaluator=evaluator)
    individual.create(
        config.creation_type,
        config.max_depth_for_new_trees,
        config.max_complexity_for_new_trees,
        node_sets,
        rng=rng,
        gene_factory=gene_factory,
    )
    return individual


# =============================================================================
# Crossover
# =============================================================================

def subtree_crossover(
    parents: Sequence[Individual],
    max_depth: int,
    max_complexity: int,
    rng: Optional[random.Random] = None,
    function_probability: float = DEFAULT_FUNCTION_PROBABILITY,
    max_attempts: Optional[int] = None,
) -> Tuple[Individual, Individual]:
    """
    Exchange one subtree between two individuals.

    One branch index is picked for both parents. Cut points are chosen in
    that branch of each parent and the subtrees below them are swapped. If
    either result is deeper than `max_depth` or larger than `max_complexity`
    the swap is undone and new cut points are drawn in the same branch.

    Both locks are taken in population-index order so concurrent crossovers
    on overlapping pairs cannot deadlock.

    Args:
        parents: Exactly two distinct individuals ("dad" and "mum")
        max_depth: Largest depth allowed for a crossed branch
        max_complexity: Largest total node count allowed for either result
        rng: Random source
        function_probability: Chance of cutting at a function node
        max_attempts: Give up after this many rejected swaps (None = never).
            On giving up both individuals are left unchanged.

    Returns:
        The two individuals, modified in place

    Raises:
        StructuralMismatchError: for anything other than two distinct
            individuals with the same, non-zero number of branches
    """
    if len(parents) != 2:
        raise StructuralMismatchError(f"Crossover needs exactly two parents, got {len(parents)}")
    dad, mum = parents
    if dad is mum:
        raise StructuralMismatchError("Crossover parents must be distinct individuals")
    if dad.n_branches != mum.n_branches:
        raise StructuralMismatchError(
            f"Parents must have the same number of trees ({dad.n_branches} vs {mum.n_branches})"
        )
    if dad.n_branches == 0:
        raise StructuralMismatchError("Parents contain no trees")

    rng = rng or random

    with _hold_locks(dad, mum):
        branch = rng.randrange(dad.n_branches)
        dad.heritage.cross_tree = branch
        mum.heritage.cross_tree = branch

        dad_root = GeneReference(dad.branches, branch)
        mum_root = GeneReference(mum.branches, branch)

        # Totals of the branches not taking part in the exchange
        dad_partial = dad.complexity - dad_root.get_gene().length()
        mum_partial = mum.complexity - mum_root.get_gene().length()

        attempts = 0
        while True:
            if max_attempts is not None and attempts >= max_attempts:
                for individual in (dad, mum):
                    individual.heritage.cross_tree = -1
                    individual.heritage.dad_cross = -1
                    individual.heritage.mum_cross = -1
                logger.warning(
                    f"No crossover within bounds (depth {max_depth}, complexity "
                    f"{max_complexity}) after {attempts} attempts on branch {branch}"
                )
                return dad, mum
            attempts += 1

            dad_cut = select_function_or_terminal_node(dad_root, rng, function_probability)
            mum_cut = select_function_or_terminal_node(mum_root, rng, function_probability)

            dad.heritage.dad_cross = dad_cut.count
            dad.heritage.mum_cross = mum_cut.count
            mum.heritage.dad_cross = mum_cut.count
            mum.heritage.mum_cross = dad_cut.count

            _swap_subtrees(dad_cut, mum_cut)

            dad_depth = dad_root.get_gene().depth()
            mum_depth = mum_root.get_gene().depth()
            dad_length = dad_partial + dad_root.get_gene().length()
            mum_length = mum_partial + mum_root.get_gene().length()

            if (dad_depth > max_depth or mum_depth > max_depth
                    or dad_length > max_complexity or mum_length > max_complexity):
                _swap_subtrees(dad_cut, mum_cut)
                logger.debug(
                    f"Rejected cut points {dad_cut.count}/{mum_cut.count} on branch {branch}: "
                    f"depths {dad_depth}/{mum_depth}, lengths {dad_length}/{mum_length}"
                )
                continue
            break

        dad.calc_length()
        mum.calc_length()
        dad.calc_depth()
        mum.calc_depth()

    return dad, mum


def _swap_subtrees(a: GeneReference, b: GeneReference) -> None:
    gene = a.get_gene()
    a.put_gene(b.get_gene())
    b.put_gene(gene)


def _hold_locks(*individuals: Individual) -> ExitStack:
    stack = ExitStack()
    for individual in sorted(individuals, key=lambda ind: (ind.population_index, id(ind))):
        stack.enter_context(individual.lock)
    return stack


# =============================================================================
# Mutation
# =============================================================================

def swap_mutation(
    individual: Individual,
    node_sets: AdfNodeSet,
    rng: Optional[random.Random] = None,
    function_probability: float = DEFAULT_FUNCTION_PROBABILITY,
    attempts: int = 5,
) -> bool:
    """
    Replace one node's type with a different type of the same arity.

    The children of the node are kept. Up to `attempts` draws are made for
    a type with a different identifier; if none is found nothing changes.

    Returns:
        True if a node type was replaced
    """
    rng = rng or random
    with individual.lock:
        if individual.n_branches == 0:
            return False
        branch = rng.randrange(individual.n_branches)
        ref = select_function_or_terminal_node(
            GeneReference(individual.branches, branch), rng, function_probability
        )
        gene = ref.get_gene()

        for _ in range(attempts):
            node = node_sets.choose_node_with_arity(branch, len(gene.children), rng)
            if node.value != gene.node.value:
                logger.debug(f"Swap mutation on branch {branch} at {ref.count}: {gene.node} -> {node}")
                gene.node = node
                individual.heritage.swap_tree = branch
                individual.heritage.swap_pos = ref.count
                return True
    return False


def shrink_mutation(individual: Individual, rng: Optional[random.Random] = None) -> bool:
    """
    Replace a function node's subtree with one of its own children.

    Nothing happens if the chosen branch holds no function node, or if the
    chosen function is the branch root and the chosen child is a terminal
    (the branch would collapse to a single node).

    Returns:
        True if the tree changed
    """
    rng = rng or random
    with individual.lock:
        if individual.n_branches == 0:
            return False
        branch = rng.randrange(individual.n_branches)
        ref = select_function_node(GeneReference(individual.branches, branch), rng)
        if ref is None:
            return False

        gene = ref.get_gene()
        slot = rng.randrange(len(gene.children))
        child = gene.children[slot]
        if ref.count == 0 and child.is_terminal:
            return False

        gene.children[slot] = None
        ref.put_gene(child)

        individual.heritage.shrink_tree = branch
        individual.heritage.shrink_pos = ref.count
        individual.calc_length()
        individual.calc_depth()
        logger.debug(f"Shrink mutation on branch {branch} at {ref.count}: kept {child.node}")
    return True


def mutate(
    individual: Individual,
    config: OperatorConfig,
    node_sets: AdfNodeSet,
    rng: Optional[random.Random] = None,
) -> Tuple[bool, bool]:
    """
    Apply swap then shrink mutation, each with its configured probability.

    Returns:
        (swapped, shrunk) flags
    """
    rng = rng or random
    swapped = False
    shrunk = False
    if rng.random() < config.swap_mutation_probability:
        swapped = swap_mutation(
            individual,
            node_sets,
            rng,
            function_probability=config.function_node_probability,
            attempts=config.swap_attempts,
        )
    if rng.random() < config.shrink_mutation_probability:
        shrunk = shrink_mutation(individual, rng)
    return swapped, shrunk
