"""
Pairing and selection for the genetic repair loop.

Each round every pair of helpful individuals is bred, the children are
ranked by fitness, children touching the same locations are collapsed to the
best-ranked one, and the rest is pruned to a bounded population.

Pairing is O(n^2) in the population, so pruning keeps the next round small:
only children within a fixed ratio of the average fitness survive, and at
most ``population_size`` of them.
"""

from __future__ import annotations

import logging
from itertools import combinations
from typing import Callable, Hashable, Iterable, List, Sequence, Tuple, TypeVar

from repair.breeding import breed
from repair.fitness import average_fitness
from repair.models import Attempt, Individual

LOG = logging.getLogger("repair.selection")

T = TypeVar("T")

# TODO: Better heuristics than a fixed fraction of the average.
FITNESS_THRESHOLD = 0.75


def individuals(attempt: Attempt) -> List[Individual]:
    """
    Keep the helpful entries of an attempt: per-property vectors with at least one pass.

    Collapsed outcomes carry no per-property information and are not bred.
    A collapsed pass should already have ended the search.
    """
    helpful: List[Individual] = []
    for entry in attempt:
        if isinstance(entry.outcome, bool):
            continue
        if any(entry.outcome):
            helpful.append(Individual(fix=entry.fix, passes=tuple(entry.outcome)))
    return helpful


def pairings(population: Sequence[Individual]) -> List[Tuple[Individual, Individual]]:
    """All unordered pairs of distinct individuals, best complementary fitness first."""
    scored = [
        (breed(first, second).fitness, (first, second))
        for first, second in combinations(population, 2)
    ]
    # sorted() is stable, so equal scores keep enumeration order.
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [pair for _, pair in scored]


def dedup_on(key: Callable[[T], Hashable], items: Iterable[T]) -> List[T]:
    """Keep the first item for each key, preserving order."""
    seen = set()
    kept: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        kept.append(item)
    return kept


def prune_generation(
    children: Sequence[Individual],
    population_size: int,
    threshold: float = FITNESS_THRESHOLD,
) -> List[Individual]:
    """Drop children below ``threshold`` times the average fitness, then cap the population."""
    if not children:
        return []
    cutoff = average_fitness(children) * threshold
    fit = [child for child in children if child.fitness >= cutoff]
    return fit[:population_size]


def selection(
    population: Sequence[Individual],
    population_size: int,
    threshold: float = FITNESS_THRESHOLD,
) -> List[Individual]:
    """Breed every pair, dedupe children by touched locations, and prune."""
    children = [breed(first, second) for first, second in pairings(population)]
    de_duped = dedup_on(lambda ind: ind.fix.key_set(), children)
    LOG.debug(
        "Selection: %d individuals -> %d children -> %d distinct",
        len(population),
        len(children),
        len(de_duped),
    )
    return prune_generation(de_duped, population_size, threshold)
