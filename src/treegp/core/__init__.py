"""Core tree representation: node types, gene trees, cursors and errors."""

from .errors import (
    TreeGPError,
    InvalidArgumentError,
    StructuralMismatchError,
    MalformedStreamError,
)
from .node import Node, NodeSet, AdfNodeSet
from .gene import (
    CreationType,
    Gene,
    GeneReference,
    select_node,
    select_function_node,
    select_function_or_terminal_node,
)

__all__ = [
    'TreeGPError',
    'InvalidArgumentError',
    'StructuralMismatchError',
    'MalformedStreamError',
    'Node',
    'NodeSet',
    'AdfNodeSet',
    'CreationType',
    'Gene',
    'GeneReference',
    'select_node',
    'select_function_node',
    'select_function_or_terminal_node',
]
