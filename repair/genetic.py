"""
Genetic repair: the generational driver.

Main loop:
1. INIT: check the unmodified program once (baseline attempt)
2. CHECKING: stop with every fully-passing fix, or give up when the round
   budget is spent
3. SELECTING: breed the helpful individuals into the next generation, apply
   each child's fix to the original program and re-check it
4. Back to CHECKING

Rounds are strictly sequential: a generation is fully selected before any of
its children is checked. Only the checker may run things concurrently.
Finding nothing is a normal outcome (EXHAUSTED, no fixes), not an error.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from repair.fragments import FixFragment, merge
from repair.models import (
    Attempt,
    AttemptEntry,
    Program,
    RepairResult,
    RepairStatus,
    apply_fix,
)
from repair.population import Generation
from repair.selection import dedup_on
from repair.stats import RepairStats, format_duration
from settings import GeneticConfig

if TYPE_CHECKING:
    from checking.base import RepairChecker

LOG = logging.getLogger("repair.genetic")


class RepairState(str, Enum):
    INIT = "init"
    CHECKING = "checking"
    SELECTING = "selecting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"


TERMINAL_STATES = frozenset({RepairState.SUCCESS, RepairState.EXHAUSTED})


def successful(attempt: Attempt) -> List[AttemptEntry]:
    return [entry for entry in attempt if entry.succeeded]


class GeneticRepair:
    """
    Generational search over fix fragments.

    One instance runs one session at a time: ``repair()`` resets the state
    machine, then ``step()`` advances it one transition until a terminal state.
    """

    def __init__(
        self,
        checker: "RepairChecker",
        config: Optional[GeneticConfig] = None,
        stats: Optional[RepairStats] = None,
    ) -> None:
        self._checker = checker
        self._config = config or GeneticConfig()
        self._stats = stats or RepairStats()
        self.reset(None)

    def reset(self, program: Optional[Program]) -> None:
        self.program = program.original if program is not None else None
        self.state = RepairState.INIT
        self.round = 0
        self.attempt: Attempt = []
        self.fixes: List[FixFragment] = []
        self.fitness_history: List[float] = []

    @property
    def stats(self) -> RepairStats:
        return self._stats

    @property
    def done(self) -> bool:
        return self.state in TERMINAL_STATES

    async def repair(self, program: Program) -> RepairResult:
        start = time.monotonic()
        self.reset(program)
        checks_before = self._stats.counter("attempt_entries")

        while not self.done:
            await self.step()

        result = RepairResult(
            status=RepairStatus.SUCCESS if self.state == RepairState.SUCCESS else RepairStatus.EXHAUSTED,
            fixes=list(self.fixes),
            rounds=self.round,
            fitness_history=list(self.fitness_history),
            checks=self._stats.counter("attempt_entries") - checks_before,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        if result.status == RepairStatus.EXHAUSTED:
            result.error_message = f"No repair found after {self.round} rounds"
        self._stats.report(LOG)
        return result

    async def step(self) -> RepairState:
        """Perform one state transition and return the new state."""
        if self.program is None:
            raise RuntimeError("step() called before reset() with a program")
        if self.state == RepairState.INIT:
            await self._on_init()
        elif self.state == RepairState.CHECKING:
            self._on_checking()
        elif self.state == RepairState.SELECTING:
            await self._on_selecting()
        return self.state

    # ── Transitions ─────────────────────────────────────────────────────────

    async def _on_init(self) -> None:
        LOG.info("Checking baseline of %s", self.program.name)
        with self._stats.timed("round"):
            self.attempt = await self._checker.check_attempt(self.program, None)
        self._stats.count("attempt_entries", len(self.attempt))
        self.round = 1
        self.state = RepairState.CHECKING

    def _on_checking(self) -> None:
        winners = successful(self.attempt)
        if winners:
            self.fixes = dedup_on(lambda fix: fix.key_set(), [entry.fix for entry in winners])
            LOG.info("Repair found after %d rounds!", self.round)
            self.state = RepairState.SUCCESS
        elif self.round >= self._config.max_rounds:
            LOG.info("No repair found within %d rounds", self._config.max_rounds)
            self.state = RepairState.EXHAUSTED
        else:
            self.state = RepairState.SELECTING

    async def _on_selecting(self) -> None:
        generation = Generation.from_attempt(self.attempt)
        new_generation = generation.next_generation(
            self._config.population_size,
            self._config.fitness_threshold,
        )
        if not len(new_generation):
            LOG.info("Generation %d has nothing left to breed", self.round)
            self.state = RepairState.EXHAUSTED
            return

        average = new_generation.average_fitness
        self.fitness_history.append(average)
        LOG.info("GENERATION %d", self.round)
        LOG.info("AVERAGE FITNESS: %.2f", average)
        LOG.info("IMPROVEMENT: %.2f", average - generation.average_fitness)
        LOG.debug("GENERATION")
        new_generation.dump(LOG)

        start = time.perf_counter()
        next_attempt: Attempt = []
        with self._stats.timed("round"):
            for individual in new_generation:
                next_attempt.extend(await self._recheck(individual.fix))
        LOG.info("ROUND TIME: %s", format_duration(time.perf_counter() - start))

        self._stats.count("attempt_entries", len(next_attempt))
        self.attempt = next_attempt
        self.round += 1
        self.state = RepairState.CHECKING

    async def _recheck(self, fix: FixFragment) -> Attempt:
        """Apply ``fix`` to the original program and check again, keeping the fix's locations."""
        patched = apply_fix(fix, self.program)
        try:
            attempt = await self._checker.check_attempt(patched, fix)
        except Exception as exc:
            LOG.warning("Re-check of %r failed, skipping it: %s", fix, exc)
            return []
        return [AttemptEntry(fix=merge(entry.fix, fix), outcome=entry.outcome) for entry in attempt]
