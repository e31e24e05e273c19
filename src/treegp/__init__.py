"""
treegp - Tree-based genetic programming individuals and operators.

Programs are sets of gene trees (a result-producing branch plus optional
automatically defined functions) evolved by subtree crossover and by swap
and shrink mutation.
"""

__version__ = "0.1.0"

from .core import *  # noqa: F401,F403
from .evolution import *  # noqa: F401,F403
