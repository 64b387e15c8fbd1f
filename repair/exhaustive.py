"""
Exhaustive repair: try combinations of the baseline candidates, smallest first.

The baseline attempt supplies the candidate fixes. Combinations of 1, 2, ...
candidates are merged (earlier candidates lead) and checked in batches by
applying each combination to the original program. Fully-passing fixes are
collected until the combinations run out or the wall-clock budget is spent,
or after the first successful batch when ``stop_on_results`` is set.
"""

from __future__ import annotations

import logging
import time
from itertools import combinations, islice
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence

from repair.fragments import FixFragment, merge
from repair.models import Program, RepairResult, RepairStatus, apply_fix, is_full_pass
from repair.selection import dedup_on
from repair.stats import RepairStats
from settings import ExhaustiveConfig

if TYPE_CHECKING:
    from checking.base import RepairChecker

LOG = logging.getLogger("repair.exhaustive")


def merged_combinations(candidates: Sequence[FixFragment]) -> Iterator[FixFragment]:
    """Merged combinations of candidates by increasing size, skipping location sets already seen."""
    seen = set()
    for size in range(1, len(candidates) + 1):
        for combo in combinations(candidates, size):
            fix = FixFragment()
            for part in combo:
                fix = merge(fix, part)
            key = fix.key_set()
            if key in seen:
                continue
            seen.add(key)
            yield fix


class ExhaustiveRepair:
    """Budgeted, batched enumeration of candidate combinations."""

    def __init__(
        self,
        checker: "RepairChecker",
        config: Optional[ExhaustiveConfig] = None,
        stats: Optional[RepairStats] = None,
    ) -> None:
        self._checker = checker
        self._config = config or ExhaustiveConfig()
        self._stats = stats or RepairStats()

    async def _check(self, program: Program, fix: FixFragment) -> bool:
        """Does ``fix`` alone make every property pass?"""
        try:
            outcome = await self._checker.check_program(apply_fix(fix, program))
        except Exception as exc:
            LOG.warning("Check of %r failed, skipping it: %s", fix, exc)
            return False
        self._stats.count("attempt_entries")
        return is_full_pass(outcome)

    async def repair(self, program: Program) -> RepairResult:
        start = time.monotonic()
        program = program.original
        deadline = start + self._config.search_budget_seconds
        result = RepairResult()
        checks_before = self._stats.counter("attempt_entries")

        with self._stats.timed("baseline"):
            baseline = await self._checker.check_attempt(program, None)
        self._stats.count("attempt_entries", len(baseline))

        found: List[FixFragment] = [entry.fix for entry in baseline if entry.succeeded]
        candidates = dedup_on(lambda fix: fix.key_set(), [entry.fix for entry in baseline if entry.fix])
        LOG.info("Exhaustive search over %d candidates", len(candidates))

        batches = 0
        combos = merged_combinations(candidates)
        while not (found and self._config.stop_on_results):
            if time.monotonic() >= deadline:
                LOG.info("Exhaustive search budget of %.0fs spent", self._config.search_budget_seconds)
                break
            batch = list(islice(combos, self._config.batch_size))
            if not batch:
                break
            batches += 1
            with self._stats.timed("batch"):
                for fix in batch:
                    # Already-found fixes are passing on their own.
                    if fix.key_set() in {f.key_set() for f in found}:
                        continue
                    if await self._check(program, fix):
                        found.append(fix)
            LOG.debug("Batch %d done, %d fixes so far", batches, len(found))

        result.fixes = dedup_on(lambda fix: fix.key_set(), found)
        result.status = RepairStatus.SUCCESS if result.fixes else RepairStatus.EXHAUSTED
        result.rounds = batches
        result.checks = self._stats.counter("attempt_entries") - checks_before
        result.duration_ms = int((time.monotonic() - start) * 1000)
        if not result.fixes:
            result.error_message = f"No repair found in {batches} batches"
        return result
