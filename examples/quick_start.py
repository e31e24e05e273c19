#!/usr/bin/env python3
"""
Quick start: symbolic regression of x^2 + x with treegp.

Builds a random population, then repeatedly selects parents by tournament,
crosses and mutates copies of them, and keeps the offspring. Prints the
best program of each generation.

Usage:
    python examples/quick_start.py [--population N] [--generations N] [--seed N]
"""

import argparse
import logging

import numpy as np

from treegp.core import AdfNodeSet, NodeSet
from treegp.evolution import (
    OperatorConfig,
    create_random_individual,
    find_best,
    get_population_stats,
    mutate,
    seed_everything,
    subtree_crossover,
)

MAX_ERROR = 1e12

OPS = {
    '+': lambda a, b: a + b,
    '-': lambda a, b: a - b,
    '*': lambda a, b: a * b,
    'neg': lambda a: -a,
}


def build_node_sets() -> AdfNodeSet:
    ns = NodeSet()
    ns.add_function(0, '+', 2)
    ns.add_function(1, '-', 2)
    ns.add_function(2, '*', 2)
    ns.add_function(3, 'neg', 1)
    ns.add_terminal(4, 'x')
    ns.add_terminal(5, '1')
    return AdfNodeSet([ns])


def run_gene(gene, x: np.ndarray) -> np.ndarray:
    name = gene.node.name
    if name == 'x':
        return x
    if name == '1':
        return np.ones_like(x)
    return OPS[name](*[run_gene(child, x) for child in gene.children])


def squared_error(individual, config) -> float:
    xs = config['xs']
    with np.errstate(over='ignore', invalid='ignore'):
        prediction = run_gene(individual.branches[0], xs)
        error = float(np.sum((prediction - config['ys']) ** 2))
    # Deep products overflow; score them as hopeless rather than infinite
    return error if np.isfinite(error) else MAX_ERROR


def tournament(population, rng, size=3):
    contestants = rng.sample(population, size)
    winner = contestants[0]
    for contestant in contestants[1:]:
        if contestant.better_than(winner):
            winner = contestant
    return winner


def parse_args():
    parser = argparse.ArgumentParser(description='Evolve a program for x^2 + x')
    parser.add_argument('--population', type=int, default=100, help='Population size (default: 100)')
    parser.add_argument('--generations', type=int, default=20, help='Generations (default: 20)')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducibility')
    parser.add_argument('--verbose', action='store_true', help='Show operator debug logging')
    return parser.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    rng = seed_everything(args.seed)
    node_sets = build_node_sets()
    config = OperatorConfig(
        max_depth_for_new_trees=5,
        max_complexity_for_new_trees=40,
        max_complexity=80,
        swap_mutation_probability=0.2,
        shrink_mutation_probability=0.1,
    )
    xs = np.linspace(-2.0, 2.0, 21)
    eval_config = {'xs': xs, 'ys': xs ** 2 + xs}

    population = []
    while len(population) < args.population:
        individual = create_random_individual(1, config, node_sets, rng, evaluator=squared_error)
        if individual.complexity <= config.max_complexity_for_new_trees:
            individual.evaluate(eval_config)
            population.append(individual)

    for generation in range(1, args.generations + 1):
        offspring = [find_best(population).copy()]
        while len(offspring) < len(population):
            dad = tournament(population, rng).copy()
            mum = tournament(population, rng).copy()
            subtree_crossover(
                [dad, mum],
                config.max_depth_for_crossover,
                config.max_complexity,
                rng,
                function_probability=config.function_node_probability,
                max_attempts=config.max_crossover_attempts,
            )
            for child in (dad, mum):
                mutate(child, config, node_sets, rng)
                child.evaluate(eval_config)
                offspring.append(child)

        population = offspring[:len(population)]
        for index, individual in enumerate(population):
            individual.population_index = index

        best = find_best(population)
        stats = get_population_stats(population)
        print(
            f"gen {generation:3d}  best={best.std_fitness:10.4f}  "
            f"size={best.complexity:3d}  mean size={stats['mean_complexity']:6.1f}  "
            f"diversity={stats['diversity']:.2f}"
        )
        if best.std_fitness == 0.0:
            break

    print()
    print(find_best(population).format())


if __name__ == '__main__':
    main()
