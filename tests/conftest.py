"""Shared fixtures: a small arithmetic node set and tree builders."""

import random

import pytest

from treegp.core import AdfNodeSet, Gene, NodeSet
from treegp.evolution import Individual


def arithmetic_node_set() -> NodeSet:
    ns = NodeSet()
    ns.add_function(0, '+', 2)
    ns.add_function(1, '-', 2)
    ns.add_function(2, '*', 2)
    ns.add_function(3, 'neg', 1)
    ns.add_function(6, 'abs', 1)
    ns.add_terminal(4, 'x')
    ns.add_terminal(5, 'y')
    return ns


def build_gene(node_set: NodeSet, expr) -> Gene:
    """Build a gene from a nested tuple like ('+', 'x', ('neg', 'y'))."""
    by_name = {node.name: node for node in node_set}
    if isinstance(expr, str):
        return Gene(by_name[expr])
    name, *args = expr
    return Gene(by_name[name], [build_gene(node_set, arg) for arg in args])


def build_individual(node_sets: AdfNodeSet, *exprs) -> Individual:
    individual = Individual(len(exprs))
    for i, expr in enumerate(exprs):
        individual.branches[i] = build_gene(node_sets[i], expr)
    individual.calc_length()
    individual.calc_depth()
    return individual


@pytest.fixture
def node_set():
    return arithmetic_node_set()


@pytest.fixture
def node_sets():
    """RPB and one ADF, both drawing from the arithmetic node set."""
    return AdfNodeSet([arithmetic_node_set(), arithmetic_node_set()])


@pytest.fixture
def rng():
    return random.Random(1234)
