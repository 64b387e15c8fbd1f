"""
Candidate-pool checker.

Candidates are fix fragments against the original program, collected up
front (for example, alternative expressions for each suspicious location).
Every check layers each candidate over the program it is given and runs the
properties on the result. Checks run concurrently, bounded by a semaphore;
results come back in pool order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from checking.base import RepairChecker
from checking.runner import PropertyRunner
from repair.fragments import FixFragment
from repair.locations import expression_spans
from repair.models import Attempt, AttemptEntry, Outcome, Program, apply_fix
from repair.stats import RepairStats

LOG = logging.getLogger("checking.pool")


class CandidatePoolChecker(RepairChecker):
    """Checks a fixed pool of candidate fixes with a PropertyRunner."""

    def __init__(
        self,
        pool: Sequence[FixFragment],
        runner: PropertyRunner,
        max_concurrency: int = 4,
        stats: Optional[RepairStats] = None,
    ) -> None:
        self._pool = list(pool)
        self._runner = runner
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._stats = stats or RepairStats()

    @classmethod
    def from_alternatives(
        cls,
        program: Program,
        alternatives: Dict[str, Sequence[str]],
        runner: PropertyRunner,
        max_concurrency: int = 4,
        stats: Optional[RepairStats] = None,
    ) -> "CandidatePoolChecker":
        """
        One single-location candidate per (expression, alternative) pair.

        ``alternatives`` maps the source text of an expression to the texts it
        may be replaced with; every occurrence of the expression is a location.
        """
        pool: List[FixFragment] = []
        for span, text in expression_spans(program.source):
            for replacement in alternatives.get(text, ()):
                if replacement != text:
                    pool.append(FixFragment.single(span, replacement))
        LOG.info("Candidate pool for %s: %d candidates", program.name, len(pool))
        return cls(pool, runner, max_concurrency=max_concurrency, stats=stats)

    @property
    def pool(self) -> List[FixFragment]:
        return list(self._pool)

    def candidates_for(self, held: Optional[FixFragment]) -> List[FixFragment]:
        """
        What to check on top of ``held``.

        Pool entries that would change something, preceded by the empty fix
        (the held program as it stands) when something is held.
        """
        if not held:
            return list(self._pool)
        fresh = [cand for cand in self._pool if not all(held.covers(span) for span in cand.keys())]
        return [FixFragment()] + fresh

    async def _check_one(self, program: Program, candidate: FixFragment) -> Outcome:
        async with self._semaphore:
            try:
                return await self._runner.run(apply_fix(candidate, program))
            except Exception as exc:
                # A failed appraisal counts as no information.
                LOG.warning("Check of %r failed: %s", candidate, exc)
                return False

    async def check_program(self, program: Program) -> Outcome:
        with self._stats.timed("check_program"):
            return await self._check_one(program, FixFragment())

    async def check_attempt(
        self,
        program: Program,
        held: Optional[FixFragment] = None,
    ) -> Attempt:
        candidates = self.candidates_for(held)
        with self._stats.timed("check_attempt"):
            outcomes = await asyncio.gather(*(self._check_one(program, cand) for cand in candidates))
        self._stats.count("candidates_checked", len(candidates))
        return [AttemptEntry(fix=cand, outcome=outcome) for cand, outcome in zip(candidates, outcomes)]
