"""
Tests for configuration, population helpers and checkpointing.

Run with: python -m pytest tests/test_population.py -v
"""

import pytest

from treegp.core import CreationType, InvalidArgumentError, MalformedStreamError
from treegp.evolution import (
    OperatorConfig,
    compute_diversity,
    create_random_individual,
    find_best,
    find_worst,
    get_population_stats,
    load_checkpoint,
    save_checkpoint,
    seed_everything,
)

from conftest import build_individual


class TestConfig:
    """Tests for OperatorConfig."""

    def test_defaults_are_valid(self):
        """The default configuration passes validation."""
        config = OperatorConfig()
        assert config.creation_type == CreationType.VARIABLE
        assert config.swap_attempts == 5
        assert config.max_crossover_attempts is None

    def test_creation_type_coerced(self):
        """String creation types become enum members."""
        assert OperatorConfig(creation_type='grow').creation_type is CreationType.GROW
        with pytest.raises(InvalidArgumentError):
            OperatorConfig(creation_type='full')

    def test_validation(self):
        """Out-of-range values are rejected."""
        with pytest.raises(InvalidArgumentError):
            OperatorConfig(swap_mutation_probability=1.5)
        with pytest.raises(InvalidArgumentError):
            OperatorConfig(max_depth_for_new_trees=1)
        with pytest.raises(InvalidArgumentError):
            OperatorConfig(max_complexity=0)
        with pytest.raises(InvalidArgumentError):
            OperatorConfig(max_crossover_attempts=0)

    def test_dict_round_trip(self):
        """to_dict/from_dict preserve every value."""
        config = OperatorConfig(creation_type='grow', max_complexity=150, max_crossover_attempts=40)
        d = config.to_dict()
        assert d['creation_type'] == 'grow'
        assert OperatorConfig.from_dict(d) == config

    def test_unknown_keys_rejected(self):
        """Misspelled keys are reported rather than ignored."""
        with pytest.raises(InvalidArgumentError):
            OperatorConfig.from_dict({'max_complexty': 10})

    def test_json_file(self, tmp_path):
        """Configuration survives a JSON file round trip."""
        config = OperatorConfig(shrink_mutation_probability=0.2)
        path = tmp_path / 'config' / 'operators.json'
        config.save(path)
        assert OperatorConfig.load(path) == config


class TestPopulation:
    """Tests for diversity and statistics."""

    def test_diversity_counts_duplicates(self, node_sets):
        """Structural duplicates count once."""
        a = build_individual(node_sets, ('+', 'x', 'y'))
        b = build_individual(node_sets, ('-', 'x', 'y'))
        population = [a, a.copy(), b, b.copy()]
        assert compute_diversity(population) == pytest.approx(0.5)
        assert compute_diversity([a, b]) == pytest.approx(1.0)
        assert compute_diversity([]) == 0.0

    def test_find_best_and_worst(self, node_sets):
        """Best uses the Occam tie-break; worst has the largest fitness."""
        small = build_individual(node_sets, ('+', 'x', 'y'))
        large = build_individual(node_sets, ('+', ('neg', 'x'), 'y'))
        bad = build_individual(node_sets, ('+', 'x', 'x'))
        small.set_fitness(1.0)
        large.set_fitness(1.0)
        bad.set_fitness(9.0)

        population = [large, bad, small]
        assert find_best(population) is small
        assert find_worst(population) is bad
        assert find_best([]) is None
        assert find_worst([]) is None

    def test_population_stats(self, node_sets):
        """Statistics summarise size, shape and fitness."""
        rng = seed_everything(42)
        config = OperatorConfig(max_depth_for_new_trees=4)
        population = [create_random_individual(2, config, node_sets, rng) for _ in range(10)]
        for i, individual in enumerate(population):
            individual.set_fitness(float(i))

        stats = get_population_stats(population)

        assert stats['size'] == 10
        assert stats['best_fitness'] == 0.0
        assert stats['worst_fitness'] == 9.0
        assert stats['depth_range'][1] <= 4
        assert 0.0 < stats['diversity'] <= 1.0
        assert get_population_stats([]) == {'size': 0}

    def test_seeded_creation_is_reproducible(self, node_sets):
        """The same seed builds the same individual."""
        config = OperatorConfig(max_depth_for_new_trees=5)
        a = create_random_individual(2, config, node_sets, seed_everything(7))
        b = create_random_individual(2, config, node_sets, seed_everything(7))
        assert a.structurally_equals(b)


class TestCheckpoint:
    """Tests for checkpoint files."""

    def test_round_trip(self, node_sets, tmp_path):
        """A saved population loads back with fitness and structure."""
        rng = seed_everything(3)
        config = OperatorConfig(max_depth_for_new_trees=5)
        population = [create_random_individual(2, config, node_sets, rng) for _ in range(5)]
        for i, individual in enumerate(population):
            individual.set_fitness(i * 0.5)

        path = tmp_path / 'runs' / 'gen_0001.tgp'
        save_checkpoint(path, population)
        loaded = load_checkpoint(path, node_sets)

        assert len(loaded) == 5
        for index, (original, restored) in enumerate(zip(population, loaded)):
            assert restored.structurally_equals(original)
            assert restored.std_fitness == original.std_fitness
            assert restored.complexity == original.complexity
            assert restored.population_index == index

    def test_bad_magic(self, node_sets, tmp_path):
        """Files that are not checkpoints are rejected."""
        path = tmp_path / 'junk.tgp'
        path.write_bytes(b'JUNKJUNK')
        with pytest.raises(MalformedStreamError):
            load_checkpoint(path, node_sets)

    def test_truncated_checkpoint(self, node_sets, tmp_path):
        """A checkpoint missing individuals is rejected."""
        population = [build_individual(node_sets, ('+', 'x', 'y'), ('neg', 'x'))]
        path = tmp_path / 'short.tgp'
        save_checkpoint(path, population)
        path.write_bytes(path.read_bytes()[:-4])
        with pytest.raises(MalformedStreamError):
            load_checkpoint(path, node_sets)
