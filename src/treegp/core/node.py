"""
Node types and per-branch node sets.

A Node describes one kind of tree node: a function with a fixed number of
arguments, or a terminal with none. Each branch of a program draws its
nodes from its own NodeSet; an AdfNodeSet holds one NodeSet per branch
(index 0 is the result-producing branch, then one per ADF).
"""

import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import InvalidArgumentError


@dataclass(frozen=True)
class Node:
    """
    A function or terminal node type.

    Attributes:
        value: Stable integer identifier, written to persisted streams
        name: Printable representation used when rendering trees
        arity: Number of arguments (0 for terminals)
    """
    value: int
    name: str
    arity: int = 0

    @property
    def is_function(self) -> bool:
        return self.arity > 0

    @property
    def is_terminal(self) -> bool:
        return self.arity == 0

    def __str__(self) -> str:
        return self.name


class NodeSet:
    """
    The functions and terminals available to one branch.

    Example:
        ns = NodeSet()
        ns.add_function(0, '+', 2)
        ns.add_function(1, '*', 2)
        ns.add_terminal(2, 'x')
    """

    def __init__(self, nodes: Optional[List[Node]] = None):
        self._nodes: List[Node] = []
        self._by_value: Dict[int, Node] = {}
        for node in nodes or []:
            self.add(node)

    def add(self, node: Node) -> Node:
        """Register a node type; identifiers must be unique within the set."""
        if node.value in self._by_value:
            raise InvalidArgumentError(f"Duplicate node value {node.value} ({node.name})")
        if node.arity < 0:
            raise InvalidArgumentError(f"Negative arity for node {node.name}")
        self._nodes.append(node)
        self._by_value[node.value] = node
        return node

    def add_function(self, value: int, name: str, arity: int) -> Node:
        if arity < 1:
            raise InvalidArgumentError(f"Function {name} must take at least one argument")
        return self.add(Node(value, name, arity))

    def add_terminal(self, value: int, name: str) -> Node:
        return self.add(Node(value, name, 0))

    @property
    def functions(self) -> List[Node]:
        return [n for n in self._nodes if n.is_function]

    @property
    def terminals(self) -> List[Node]:
        return [n for n in self._nodes if n.is_terminal]

    def find_node(self, value: int) -> Optional[Node]:
        """Look up a node type by identifier."""
        return self._by_value.get(value)

    def choose_function(self, rng: Optional[random.Random] = None) -> Node:
        return _choose(self.functions, rng, 'function')

    def choose_terminal(self, rng: Optional[random.Random] = None) -> Node:
        return _choose(self.terminals, rng, 'terminal')

    def choose_node_with_arity(self, arity: int, rng: Optional[random.Random] = None) -> Node:
        """Pick uniformly among the node types taking exactly `arity` arguments."""
        candidates = [n for n in self._nodes if n.arity == arity]
        return _choose(candidates, rng, f'node with arity {arity}')

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes)

    def __repr__(self) -> str:
        return f"NodeSet(functions={len(self.functions)}, terminals={len(self.terminals)})"


class AdfNodeSet:
    """
    One NodeSet per branch of an individual.

    Branch 0 is the result-producing branch; branch k (k >= 1) is ADF k-1.
    """

    def __init__(self, node_sets: Optional[List[NodeSet]] = None):
        self._node_sets: List[NodeSet] = list(node_sets or [])

    def append(self, node_set: NodeSet) -> None:
        self._node_sets.append(node_set)

    def choose_random_function(self, branch_index: int, rng: Optional[random.Random] = None) -> Node:
        return self._node_sets[branch_index].choose_function(rng)

    def choose_node_with_arity(
        self,
        branch_index: int,
        arity: int,
        rng: Optional[random.Random] = None,
    ) -> Node:
        return self._node_sets[branch_index].choose_node_with_arity(arity, rng)

    def __getitem__(self, branch_index: int) -> NodeSet:
        return self._node_sets[branch_index]

    def __len__(self) -> int:
        return len(self._node_sets)

    def __iter__(self):
        return iter(self._node_sets)


def _choose(candidates: List[Node], rng: Optional[random.Random], what: str) -> Node:
    if not candidates:
        raise InvalidArgumentError(f"Node set has no {what}")
    return (rng or random).choice(candidates)
