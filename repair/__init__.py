"""
Repair package: genetic search over fix fragments.

Given a program and a checker that reports, per candidate fix, which
properties pass, the search merges partially-successful fixes generation by
generation until one satisfies every property or the round budget runs out.

The drivers (repair.genetic, repair.exhaustive) are imported from their
modules; this package only re-exports the data model.
"""

from __future__ import annotations

from repair.fragments import FixFragment, merge
from repair.locations import SourceSpan, expression_spans
from repair.models import (
    Attempt,
    AttemptEntry,
    Individual,
    Outcome,
    PassVector,
    Program,
    RepairResult,
    RepairStatus,
    apply_fix,
    is_full_pass,
)

__all__ = [
    "Attempt",
    "AttemptEntry",
    "FixFragment",
    "Individual",
    "Outcome",
    "PassVector",
    "Program",
    "RepairResult",
    "RepairStatus",
    "SourceSpan",
    "apply_fix",
    "expression_spans",
    "is_full_pass",
    "merge",
]
