"""
Fitness of repair individuals.

Fitness = number of properties the individual satisfies, as a float.

No tie-break beyond this scalar: equal-fitness individuals keep whatever
order the pairing enumeration produced them in.
"""

from __future__ import annotations

from typing import Iterable

from repair.models import Individual


def fitness(individual: Individual) -> float:
    return individual.fitness


def average_fitness(individuals: Iterable[Individual]) -> float:
    """Mean fitness; an empty population is a caller error."""
    scores = [ind.fitness for ind in individuals]
    if not scores:
        raise ValueError("Cannot average the fitness of an empty population")
    return sum(scores) / len(scores)
