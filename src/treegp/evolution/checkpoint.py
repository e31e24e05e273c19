"""
Checkpointing of populations to disk.

File layout: the magic bytes b'TGP1', the individual count as big-endian
int32, then each individual's own `save` encoding. Reads and writes hold a
file lock on `<path>.lock` so several processes can share a checkpoint.
"""

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from filelock import FileLock

from ..core.errors import MalformedStreamError
from ..core.node import AdfNodeSet
from ..core.streams import read_struct, write_struct
from .individual import Individual

logger = logging.getLogger(__name__)

CHECKPOINT_MAGIC = b'TGP1'
COUNT_RECORD = '>i'


def _get_lock(path: Path) -> FileLock:
    """Get a file lock for atomic operations."""
    return FileLock(str(path) + '.lock')


def save_checkpoint(path: Union[str, Path], population: List[Individual]) -> None:
    """Write every individual of `population` to `path`."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with _get_lock(path):
        with open(path, 'wb') as f:
            f.write(CHECKPOINT_MAGIC)
            write_struct(f, COUNT_RECORD, len(population))
            for individual in population:
                individual.save(f)
    logger.info(f"Saved {len(population)} individuals to {path}")


def load_checkpoint(
    path: Union[str, Path],
    node_sets: AdfNodeSet,
    evaluator: Optional[Callable[[Individual, Any], float]] = None,
) -> List[Individual]:
    """
    Read a population written by `save_checkpoint`.

    Every individual gets one branch per entry of `node_sets` and its
    population index set to its position in the file.
    """
    path = Path(path)
    with _get_lock(path):
        with open(path, 'rb') as f:
            magic = f.read(len(CHECKPOINT_MAGIC))
            if magic != CHECKPOINT_MAGIC:
                raise MalformedStreamError(f"{path} is not a treegp checkpoint")
            (count,) = read_struct(f, COUNT_RECORD, 'individual count')
            if count < 0:
                raise MalformedStreamError(f"Negative individual count {count} in {path}")

            population = []
            for index in range(count):
                individual = Individual(len(node_sets), evaluator=evaluator, population_index=index)
                individual.load(f, node_sets)
                population.append(individual)

    logger.info(f"Loaded {len(population)} individuals from {path}")
    return population
