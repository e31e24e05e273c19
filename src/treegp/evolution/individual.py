"""
Individual representation for tree-based genetic programming.

An Individual holds one gene tree per branch: the result-producing branch
(RPB, index 0) followed by one tree per automatically defined function
(ADF). Besides the trees it caches the total complexity (node count) and
maximum depth, stores standard and adjusted fitness, and keeps a heritage
record describing the operation that last produced it.

Structure-changing operations hold the individual's lock for their whole
duration, so worker threads may operate on different individuals of one
population at the same time.
"""

import logging
import threading
from copy import copy as shallow_copy
from dataclasses import dataclass, asdict, fields
from typing import Any, BinaryIO, Callable, Dict, List, Optional

from ..core.errors import InvalidArgumentError, MalformedStreamError, StructuralMismatchError
from ..core.gene import CreationType, Gene, coerce_creation_type
from ..core.node import AdfNodeSet, Node
from ..core.streams import read_struct, write_struct
from .fitness import adjusted_fitness, validate_standard_fitness

logger = logging.getLogger(__name__)

FITNESS_RECORD = '>dd'
BRANCH_COUNT_RECORD = '>i'

# Hash layout: complexity in the low 8 bits, depth from bit 8, then two
# bits per branch root starting at bit 12
HASH_DEPTH_SHIFT = 8
HASH_BRANCH_SHIFT = 12
HASH_BITS = 32


@dataclass
class Heritage:
    """
    Provenance of an individual: how the operation that last produced it ran.

    Every field is -1 when not applicable. Heritage is report-only; it
    never influences selection and is not persisted.
    """
    dad_index: int = -1
    dad_cross: int = -1
    mum_index: int = -1
    mum_cross: int = -1
    cross_tree: int = -1
    swap_tree: int = -1
    swap_pos: int = -1
    shrink_tree: int = -1
    shrink_pos: int = -1

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, -1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class Individual:
    """
    One evolvable program.

    Attributes:
        branches: Gene tree roots, RPB first, then ADF0, ADF1, ...
        std_fitness: Standard fitness (>= 0, lower is better)
        adj_fitness: Adjusted fitness 1 / (1 + std_fitness)
        heritage: Provenance of the last operation applied
        population_index: Slot in the owning population (-1 if detached);
            fixes the lock order when two individuals are crossed
        evaluator: Optional callable(individual, config) -> standard fitness
        lock: Re-entrant lock guarding this individual's structure
    """

    def __init__(
        self,
        n_branches: int,
        evaluator: Optional[Callable[['Individual', Any], float]] = None,
        population_index: int = -1,
    ):
        if n_branches < 0:
            raise InvalidArgumentError(f"Branch count must be non-negative, got {n_branches}")
        self.branches: List[Optional[Gene]] = [None] * n_branches
        self.std_fitness = 0.0
        self.adj_fitness = adjusted_fitness(0.0)
        self._complexity = 0
        self._depth = 0
        self.heritage = Heritage()
        self.population_index = population_index
        self.evaluator = evaluator
        self.lock = threading.RLock()

    @property
    def n_branches(self) -> int:
        return len(self.branches)

    @property
    def complexity(self) -> int:
        """Cached total node count over all branches."""
        return self._complexity

    @property
    def max_depth(self) -> int:
        """Cached depth of the deepest branch."""
        return self._depth

    def calc_length(self) -> int:
        self._complexity = sum(gene.length() for gene in self.branches)
        return self._complexity

    def calc_depth(self) -> int:
        self._depth = max((gene.depth() for gene in self.branches), default=0)
        return self._depth

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def create(
        self,
        creation_type: CreationType,
        allowable_depth: int,
        allowable_length: int,
        node_sets: AdfNodeSet,
        rng=None,
        gene_factory: Optional[Callable[[Node], Gene]] = None,
    ) -> None:
        """
        Fill every branch with a random tree.

        Each branch root is a random function from that branch's node set,
        built through `gene_factory` (Gene if None). The subtree below it is
        grown within the remaining depth and node budgets. The node budget
        is shared by all branches; if it is overrun the individual is still
        completed, and the caller is expected to reject it by comparing
        `complexity` with `allowable_length`.

        Args:
            creation_type: CreationType.GROW or CreationType.VARIABLE
            allowable_depth: Maximum tree depth (at least 2)
            allowable_length: Maximum total node count
            node_sets: One node set per branch
            rng: Random source
            gene_factory: Builds genes from node types
        """
        creation_type = coerce_creation_type(creation_type)
        if allowable_depth < 2:
            raise InvalidArgumentError(f"allowable_depth must be at least 2, got {allowable_depth}")
        if len(node_sets) < self.n_branches:
            raise InvalidArgumentError(
                f"Need {self.n_branches} node sets, got {len(node_sets)}"
            )

        factory = gene_factory or Gene
        with self.lock:
            length_so_far = 0
            for i in range(self.n_branches):
                root = factory(node_sets.choose_random_function(i, rng))
                self.branches[i] = root
                length_so_far += root.create(
                    creation_type,
                    allowable_depth - 1,
                    allowable_length - length_so_far,
                    node_sets[i],
                    rng,
                    gene_factory,
                )
            self._complexity = length_so_far
            self.calc_depth()
            self.heritage.clear()

        if length_so_far > allowable_length:
            logger.debug(
                f"Created individual has {length_so_far} nodes, over the {allowable_length} allowed"
            )

    def copy(self) -> 'Individual':
        """
        Duplicate structure, fitness and evaluator.

        The copy gets a fresh lock, is detached from any population and
        starts with an empty heritage.
        """
        with self.lock:
            clone = shallow_copy(self)
            clone.branches = [gene.copy() if gene is not None else None for gene in self.branches]
        clone.heritage = Heritage()
        clone.population_index = -1
        clone.lock = threading.RLock()
        return clone

    def check_integrity(self) -> None:
        """Raise StructuralMismatchError if a branch is missing or a gene has the wrong arity."""
        for i, root in enumerate(self.branches):
            if root is None:
                raise StructuralMismatchError(f"Missing tree in {self.branch_label(i)}")
            stack = [root]
            while stack:
                gene = stack.pop()
                if len(gene.children) != gene.node.arity or any(c is None for c in gene.children):
                    raise StructuralMismatchError(
                        f"Gene {gene.node.name} in {self.branch_label(i)} has incomplete children"
                    )
                stack.extend(gene.children)

    # -------------------------------------------------------------------------
    # Fitness
    # -------------------------------------------------------------------------

    def set_fitness(self, std_fitness: float) -> None:
        """Store standard fitness and derive adjusted fitness."""
        self.std_fitness = validate_standard_fitness(std_fitness)
        self.adj_fitness = adjusted_fitness(self.std_fitness)

    def evaluate(self, config: Any = None) -> float:
        """
        Compute and store standard fitness with the supplied evaluator.

        Raises:
            NotImplementedError: if no evaluator was supplied
        """
        if self.evaluator is None:
            raise NotImplementedError("An evaluator must be supplied to evaluate individuals")
        std_fitness = self.evaluator(self, config)
        self.set_fitness(std_fitness)
        return self.std_fitness

    def better_than(self, other: 'Individual') -> bool:
        """Lower standard fitness wins; ties go to the smaller program."""
        if self.std_fitness < other.std_fitness:
            return True
        if self.std_fitness > other.std_fitness:
            return False
        return self._complexity < other._complexity

    # -------------------------------------------------------------------------
    # Diversity
    # -------------------------------------------------------------------------

    def structural_hash(self) -> int:
        """
        Coarse structural signature.

        Equal structures always share a signature; different structures
        may collide, so confirm with `structurally_equals`.
        """
        signature = self._complexity ^ (self._depth << HASH_DEPTH_SHIFT)
        shift = HASH_BRANCH_SHIFT
        for gene in self.branches:
            if shift >= HASH_BITS:
                break
            if gene is not None:
                signature ^= gene.node.value << shift
            shift += 2
        return signature & ((1 << HASH_BITS) - 1)

    def structurally_equals(self, other: 'Individual') -> bool:
        """
        True if every branch has the same shape and node identifiers.

        Raises:
            StructuralMismatchError: if the branch counts differ
        """
        if not isinstance(other, Individual):
            return False
        if self.n_branches != other.n_branches:
            raise StructuralMismatchError(
                f"Branch counts differ: {self.n_branches} vs {other.n_branches}"
            )
        for g1, g2 in zip(self.branches, other.branches):
            if g1 is not None:
                if not g1.structurally_equals(g2):
                    return False
            elif g2 is not None:
                return False
        return True

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, stream: BinaryIO) -> None:
        """
        Write fitness and tree structure.

        Layout: std_fitness and adj_fitness as big-endian float64, the
        branch count as int32, then each branch's gene encoding. Complexity,
        depth and heritage are not written.
        """
        with self.lock:
            write_struct(stream, FITNESS_RECORD, self.std_fitness, self.adj_fitness)
            write_struct(stream, BRANCH_COUNT_RECORD, self.n_branches)
            for i, gene in enumerate(self.branches):
                if gene is None:
                    raise StructuralMismatchError(f"Cannot save missing tree in {self.branch_label(i)}")
                gene.save(stream)

    def load(
        self,
        stream: BinaryIO,
        node_sets: AdfNodeSet,
        gene_factory: Optional[Callable[[Node], Gene]] = None,
    ) -> None:
        """Read what `save` wrote, then recompute complexity and depth."""
        if len(node_sets) < self.n_branches:
            raise InvalidArgumentError(
                f"Need {self.n_branches} node sets, got {len(node_sets)}"
            )
        with self.lock:
            std_fitness, adj_fitness = read_struct(stream, FITNESS_RECORD, 'fitness record')
            (n_branches,) = read_struct(stream, BRANCH_COUNT_RECORD, 'branch count')
            if n_branches != self.n_branches:
                raise MalformedStreamError(
                    f"Stream has {n_branches} branches, individual has {self.n_branches}"
                )
            try:
                validate_standard_fitness(std_fitness)
            except InvalidArgumentError as e:
                raise MalformedStreamError(str(e)) from e

            branches = [Gene.load(stream, node_sets[i], gene_factory) for i in range(n_branches)]

            self.std_fitness = std_fitness
            self.adj_fitness = adj_fitness
            self.branches = branches
            self.calc_length()
            self.calc_depth()
            self.heritage.clear()

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @staticmethod
    def branch_label(index: int) -> str:
        return 'RPB' if index == 0 else f'ADF{index - 1}'

    def format(self) -> str:
        """Text dump of every branch, labelled RPB, ADF0, ADF1, ..."""
        lines = []
        for i, gene in enumerate(self.branches):
            label = f"{self.branch_label(i)}:"
            lines.append(f"{label:<5} {gene}")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"Individual(branches={self.n_branches}, complexity={self._complexity}, "
            f"depth={self._depth}, fitness={self.std_fitness:.4g})"
        )
