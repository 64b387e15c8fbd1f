"""
Generation management for the genetic repair loop.

A Generation is the working population of one round. It is never mutated in
place: each round builds a fresh one from the checker's attempt and discards
the previous one once its successors are computed.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Sequence

from repair.fitness import average_fitness
from repair.models import Attempt, Individual
from repair.selection import FITNESS_THRESHOLD, individuals, selection

LOG = logging.getLogger("repair.population")


class Generation:
    """An ordered, read-only population of individuals."""

    def __init__(self, members: Optional[Sequence[Individual]] = None) -> None:
        self._members: List[Individual] = list(members or [])

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "Generation":
        """Build the breeding population from the helpful entries of an attempt."""
        helpful = individuals(attempt)
        LOG.info("Generation from attempt: %d helpful / %d checked", len(helpful), len(attempt))
        return cls(helpful)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[Individual]:
        return iter(self._members)

    @property
    def members(self) -> List[Individual]:
        return list(self._members)

    @property
    def best(self) -> Optional[Individual]:
        """The fittest individual, or None if empty. Ties go to the earliest."""
        if not self._members:
            return None
        return max(self._members, key=lambda ind: ind.fitness)

    @property
    def average_fitness(self) -> float:
        if not self._members:
            return 0.0
        return average_fitness(self._members)

    def next_generation(
        self,
        population_size: int,
        threshold: float = FITNESS_THRESHOLD,
    ) -> "Generation":
        return Generation(selection(self._members, population_size, threshold))

    def dump(self, logger: logging.Logger = LOG, level: int = logging.DEBUG) -> None:
        """Audit dump: one line per individual with its fix and fitness."""
        if not logger.isEnabledFor(level):
            return
        for ind in self._members:
            logger.log(level, "  %r fitness=%.1f", ind.fix, ind.fitness)
