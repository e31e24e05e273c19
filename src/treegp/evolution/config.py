"""
Run-time configuration for the genetic operators.

Values default to common settings for Koza-style tree GP and can be
round-tripped through a dict or a JSON file.
"""

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..core.errors import InvalidArgumentError
from ..core.gene import CreationType, DEFAULT_FUNCTION_PROBABILITY, coerce_creation_type


@dataclass
class OperatorConfig:
    """Configuration for tree creation, crossover and mutation."""
    # Creation of new trees
    creation_type: CreationType = CreationType.VARIABLE
    max_depth_for_new_trees: int = 6
    max_complexity_for_new_trees: int = 100

    # Crossover bounds
    max_depth_for_crossover: int = 17
    max_complexity: int = 200
    max_crossover_attempts: Optional[int] = None  # None = retry until bounds hold

    # Mutation
    swap_mutation_probability: float = 0.1
    shrink_mutation_probability: float = 0.05
    swap_attempts: int = 5

    # Cut point selection
    function_node_probability: float = DEFAULT_FUNCTION_PROBABILITY

    def __post_init__(self):
        """Validate configuration values."""
        self.creation_type = coerce_creation_type(self.creation_type)

        if self.max_depth_for_new_trees < 2:
            raise InvalidArgumentError(
                f"max_depth_for_new_trees must be at least 2, got {self.max_depth_for_new_trees}"
            )
        if self.max_depth_for_crossover < 2:
            raise InvalidArgumentError(
                f"max_depth_for_crossover must be at least 2, got {self.max_depth_for_crossover}"
            )
        for name in ('max_complexity_for_new_trees', 'max_complexity', 'swap_attempts'):
            if getattr(self, name) < 1:
                raise InvalidArgumentError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_crossover_attempts is not None and self.max_crossover_attempts < 1:
            raise InvalidArgumentError(
                f"max_crossover_attempts must be positive or None, got {self.max_crossover_attempts}"
            )
        for name in ('swap_mutation_probability', 'shrink_mutation_probability',
                     'function_node_probability'):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise InvalidArgumentError(f"{name} must be in [0, 1], got {getattr(self, name)}")

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d['creation_type'] = self.creation_type.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OperatorConfig':
        """Create from dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidArgumentError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'OperatorConfig':
        """Load configuration from a JSON file."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)
