"""
Exception hierarchy for tree-based genetic programming.

All errors are raised at the point of detection and abort the enclosing
operation. The population manager decides whether to skip, retry or stop.
"""


class TreeGPError(Exception):
    """Base class for all treegp errors."""


class InvalidArgumentError(TreeGPError, ValueError):
    """An argument is outside the range an operation accepts."""


class StructuralMismatchError(TreeGPError):
    """Individuals or trees do not have compatible structure."""


class MalformedStreamError(TreeGPError):
    """A persisted stream could not be decoded."""
