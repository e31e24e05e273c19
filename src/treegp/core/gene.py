"""
Gene trees and gene cursors.

A Gene is one node of a program tree: a Node type plus an ordered list of
child genes, one per argument of the node. A GeneReference is a cursor that
locates a gene by the list that holds it (an individual's branch list or a
parent's child list) and its slot in that list, so operators can replace a
subtree in place without searching for it again.

Cut points are numbered by their pre-order position within the branch
(root = 0). That number is what gets recorded in an individual's heritage.
"""

import random
from copy import copy as shallow_copy
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Iterator, List, Optional, Tuple

from .errors import InvalidArgumentError, MalformedStreamError
from .node import Node, NodeSet
from .streams import read_struct, write_struct

# Node value (int32) followed by child count (uint16)
GENE_RECORD = '>iH'

# Chance of cutting at a function node rather than a terminal (Koza's 90/10 rule)
DEFAULT_FUNCTION_PROBABILITY = 0.9


class CreationType(str, Enum):
    """How random trees are grown."""
    GROW = 'grow'
    VARIABLE = 'variable'


def coerce_creation_type(value) -> CreationType:
    try:
        return CreationType(value)
    except ValueError:
        raise InvalidArgumentError(
            f"Creation type must be 'grow' or 'variable', got {value!r}"
        ) from None


class Gene:
    """
    A node in a program tree.

    Attributes:
        node: The Node type of this gene
        children: Child genes, one per argument of `node`
    """

    def __init__(self, node: Node, children: Optional[List['Gene']] = None):
        self.node = node
        if children is None:
            children = [None] * node.arity
        self.children: List[Optional['Gene']] = list(children)

    @property
    def is_function(self) -> bool:
        return self.node.is_function

    @property
    def is_terminal(self) -> bool:
        return self.node.is_terminal

    def length(self) -> int:
        """Total number of nodes in this subtree."""
        return 1 + sum(child.length() for child in self.children)

    def depth(self) -> int:
        """Number of levels in this subtree (a lone terminal has depth 1)."""
        if not self.children:
            return 1
        return 1 + max(child.depth() for child in self.children)

    def count_functions(self) -> int:
        return sum(1 for gene in self.walk() if gene.is_function)

    def walk(self) -> Iterator['Gene']:
        """Yield genes of this subtree in pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def copy(self) -> 'Gene':
        """Deep structural copy; Node types are shared."""
        clone = shallow_copy(self)
        clone.children = [child.copy() for child in self.children]
        return clone

    def structurally_equals(self, other: 'Gene') -> bool:
        """Same node identifiers in the same arrangement at every position."""
        if other is None or self.node.value != other.node.value:
            return False
        if len(self.children) != len(other.children):
            return False
        return all(a.structurally_equals(b) for a, b in zip(self.children, other.children))

    def create(
        self,
        creation_type: CreationType,
        allowable_depth: int,
        allowable_length: int,
        node_set: NodeSet,
        rng: Optional[random.Random] = None,
        gene_factory: Optional[Callable[[Node], 'Gene']] = None,
    ) -> int:
        """
        Grow random children below this gene.

        Args:
            creation_type: GROW uses functions until the depth budget runs out;
                VARIABLE picks function or terminal with equal chance
            allowable_depth: Levels available below this gene
            allowable_length: Node budget for this subtree, this gene included
            node_set: Node types for the branch being built
            rng: Random source (module-level random if None)
            gene_factory: Builds child genes (Gene if None)

        Returns:
            Number of nodes in the finished subtree. Once the node budget is
            spent the remaining slots get terminals, so the result can
            exceed `allowable_length`; callers reject such trees.
        """
        rng = rng or random
        factory = gene_factory or Gene
        length_so_far = 1

        for i in range(len(self.children)):
            if allowable_depth <= 1 or length_so_far >= allowable_length:
                node = node_set.choose_terminal(rng)
            elif creation_type == CreationType.GROW or rng.random() < 0.5:
                node = node_set.choose_function(rng)
            else:
                node = node_set.choose_terminal(rng)

            child = factory(node)
            self.children[i] = child
            if node.is_function:
                length_so_far += child.create(
                    creation_type,
                    allowable_depth - 1,
                    allowable_length - length_so_far,
                    node_set,
                    rng,
                    gene_factory,
                )
            else:
                length_so_far += 1

        return length_so_far

    def save(self, stream: BinaryIO) -> None:
        write_struct(stream, GENE_RECORD, self.node.value, len(self.children))
        for child in self.children:
            child.save(stream)

    @classmethod
    def load(
        cls,
        stream: BinaryIO,
        node_set: NodeSet,
        gene_factory: Optional[Callable[[Node], 'Gene']] = None,
    ) -> 'Gene':
        """Decode a subtree written by `save`, resolving node values in `node_set`."""
        value, n_children = read_struct(stream, GENE_RECORD, 'gene record')
        node = node_set.find_node(value)
        if node is None:
            raise MalformedStreamError(f"Unknown node value {value}")
        if n_children != node.arity:
            raise MalformedStreamError(
                f"Node {node.name} has arity {node.arity} but stream has {n_children} children"
            )
        gene = (gene_factory or cls)(node)
        for i in range(n_children):
            gene.children[i] = cls.load(stream, node_set, gene_factory)
        return gene

    def __str__(self) -> str:
        if not self.children:
            return str(self.node)
        return '(' + ' '.join([str(self.node)] + [str(c) for c in self.children]) + ')'

    def __repr__(self) -> str:
        return f"Gene({self})"


@dataclass
class GeneReference:
    """
    Cursor locating a gene by its holder list and slot.

    Attributes:
        container: List holding the gene (branch list or parent's children)
        index: Slot of the gene in `container`
        count: Pre-order position of the gene within its branch
    """
    container: list
    index: int
    count: int = 0

    def get_gene(self) -> Gene:
        return self.container[self.index]

    def put_gene(self, gene: Gene) -> None:
        self.container[self.index] = gene

    def copy(self) -> 'GeneReference':
        return GeneReference(self.container, self.index, self.count)


def _walk_slots(root_ref: GeneReference) -> Iterator[Tuple[list, int, Gene]]:
    stack = [(root_ref.container, root_ref.index)]
    while stack:
        container, index = stack.pop()
        gene = container[index]
        yield container, index, gene
        for i in reversed(range(len(gene.children))):
            stack.append((gene.children, i))


def select_node(
    root_ref: GeneReference,
    predicate: Callable[[Gene], bool],
    rng: Optional[random.Random] = None,
) -> Optional[GeneReference]:
    """
    Choose uniformly among the genes of a branch that satisfy `predicate`.

    Returns a new cursor whose `count` is the chosen gene's pre-order
    position, or None if no gene qualifies.
    """
    candidates = [
        GeneReference(container, index, count)
        for count, (container, index, gene) in enumerate(_walk_slots(root_ref))
        if predicate(gene)
    ]
    if not candidates:
        return None
    return (rng or random).choice(candidates)


def select_function_node(
    root_ref: GeneReference,
    rng: Optional[random.Random] = None,
) -> Optional[GeneReference]:
    """Cursor to a random function gene, or None for a terminal-only branch."""
    return select_node(root_ref, lambda gene: gene.is_function, rng)


def select_function_or_terminal_node(
    root_ref: GeneReference,
    rng: Optional[random.Random] = None,
    function_probability: float = DEFAULT_FUNCTION_PROBABILITY,
) -> GeneReference:
    """
    Cursor to a random gene, biased toward function genes.

    With probability `function_probability` a function gene is chosen,
    otherwise a terminal. Falls back to any gene when the chosen kind is
    absent from the branch.
    """
    rng = rng or random
    if rng.random() < function_probability:
        ref = select_function_node(root_ref, rng)
    else:
        ref = select_node(root_ref, lambda gene: gene.is_terminal, rng)
    if ref is None:
        ref = select_node(root_ref, lambda gene: True, rng)
    return ref
