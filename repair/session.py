"""
Repair session: wire a problem, a checker and a search strategy together.

A session owns its RepairStats; nothing is shared between sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from checking.memo import MemoizingChecker
from checking.pool import CandidatePoolChecker
from checking.runner import Property, PropertyRunner
from repair.exhaustive import ExhaustiveRepair
from repair.genetic import GeneticRepair
from repair.models import Program, RepairResult
from repair.patches import render_diff, save_patches, timestamped_directory
from repair.stats import RepairStats
from settings import RepairConfig

LOG = logging.getLogger("repair.session")

STRATEGIES = ("genetic", "exhaustive")


@dataclass
class RepairProblem:
    """What to repair: the program, the function under test and its properties."""

    program: Program
    target: str
    properties: List[Property]
    alternatives: Dict[str, Sequence[str]] = field(default_factory=dict)
    context: List[str] = field(default_factory=list)


class RepairSession:
    def __init__(self, config: Optional[RepairConfig] = None) -> None:
        self.config = config or RepairConfig()
        self.stats = RepairStats()

    def build_checker(self, problem: RepairProblem) -> MemoizingChecker:
        runner = PropertyRunner(
            problem.properties,
            problem.target,
            context=problem.context,
            config=self.config.check,
            stats=self.stats,
        )
        pool = CandidatePoolChecker.from_alternatives(
            problem.program,
            problem.alternatives,
            runner,
            max_concurrency=self.config.check.max_concurrency,
            stats=self.stats,
        )
        return MemoizingChecker(pool, stats=self.stats)

    async def run(self, problem: RepairProblem, strategy: str = "genetic") -> RepairResult:
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {strategy!r}, expected one of {STRATEGIES}")

        LOG.info(
            "Repairing `%s` in %s against %d properties (%s)",
            problem.target,
            problem.program.name,
            len(problem.properties),
            strategy,
        )
        checker = self.build_checker(problem)
        try:
            if strategy == "genetic":
                engine = GeneticRepair(checker, self.config.genetic, self.stats)
            else:
                engine = ExhaustiveRepair(checker, self.config.exhaustive, self.stats)
            result = await engine.repair(problem.program)
        finally:
            await checker.close()

        result.metadata["strategy"] = strategy
        LOG.info("Repair %s: %d fixes in %dms", result.status.value, len(result.fixes), result.duration_ms)
        return result

    def save(self, problem: RepairProblem, result: RepairResult, timestamped: bool = True):
        """Write one patch file per fix found; returns the written paths."""
        output = self.config.output
        directory = timestamped_directory(output.directory) if timestamped else output.directory
        patches = [render_diff(problem.program, fix) for fix in result.fixes]
        return save_patches(patches, directory, overwrite=output.overwrite)
