"""
Breeding: combine two individuals into a child that is at least as fit as either parent.

The child's fix is the fragment merge of both parents, led by the fitter one
(ties go to the first argument). Its pass vector is the pointwise OR of the
parents' vectors, which can only add passing properties.
"""

from __future__ import annotations

from repair.fragments import merge
from repair.models import Individual, PassVector


def lor(left: PassVector, right: PassVector) -> PassVector:
    """Pointwise OR of two pass vectors over the same property set."""
    if len(left) != len(right):
        raise ValueError(
            f"Pass vectors cover different property sets ({len(left)} vs {len(right)} properties)"
        )
    return tuple(a or b for a, b in zip(left, right))


def breed(first: Individual, second: Individual) -> Individual:
    if first.fitness >= second.fitness:
        dominant, recessive = first, second
    else:
        dominant, recessive = second, first
    return Individual(
        fix=merge(dominant.fix, recessive.fix),
        passes=lor(first.passes, second.passes),
    )


def complementary(first: Individual, second: Individual) -> float:
    """How good the pair is together: the fitness of their child."""
    return breed(first, second).fitness
