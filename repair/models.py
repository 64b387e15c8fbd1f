"""
Core data models for the repair loop.

Plain dataclasses; only the configuration overrides in ``settings`` are
validated with Pydantic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import uuid4

from repair.fragments import FixFragment, merge
from repair.locations import SourceSpan

# One entry per property under test: did property i pass under this fix?
PassVector = Tuple[bool, ...]

# A checker either attributes results per property, or collapses them into a
# single uniform pass (True) / fail or no-information (False).
Outcome = Union[PassVector, bool]


class RepairStatus(str, Enum):
    """Outcome of a repair run."""

    SUCCESS = "success"
    EXHAUSTED = "exhausted"


def is_full_pass(outcome: Outcome) -> bool:
    """True for a collapsed pass or a non-empty vector with every property passing."""
    if isinstance(outcome, bool):
        return outcome
    return len(outcome) > 0 and all(outcome)


@dataclass(frozen=True)
class Individual:
    """A candidate fix paired with its measured per-property outcome."""

    fix: FixFragment
    passes: PassVector

    @property
    def fitness(self) -> float:
        return float(sum(1 for passed in self.passes if passed))


@dataclass(frozen=True)
class AttemptEntry:
    """One checked candidate: the fix and what the checker made of it."""

    fix: FixFragment
    outcome: Outcome

    @property
    def succeeded(self) -> bool:
        return is_full_pass(self.outcome)


Attempt = List[AttemptEntry]


@dataclass(frozen=True)
class Program:
    """
    The program under repair.

    ``source`` is always the original text; ``edits`` is the fix already
    layered on top of it. Applying a fix never touches ``source``, so every
    location in every fragment keeps referring to the original text.
    """

    source: str
    name: str = "<program>"
    edits: FixFragment = field(default_factory=FixFragment)

    def render(self) -> str:
        """Produce the patched program text."""
        return apply_edits(self.source, self.edits)

    @property
    def original(self) -> "Program":
        return Program(source=self.source, name=self.name)


def apply_fix(fix: FixFragment, program: Program) -> Program:
    """Layer ``fix`` over ``program``; the new fix takes precedence over earlier edits."""
    return Program(source=program.source, name=program.name, edits=merge(fix, program.edits))


def _line_offsets(data: bytes) -> List[int]:
    offsets = [0]
    for line in data.splitlines(keepends=True):
        offsets.append(offsets[-1] + len(line))
    return offsets


def _offset(offsets: List[int], line: int, col: int, data_len: int) -> int:
    if line - 1 >= len(offsets):
        raise ValueError(f"line {line} is past the end of the program")
    return min(offsets[line - 1] + col, data_len)


def apply_edits(source: str, edits: FixFragment) -> str:
    """
    Splice replacements into ``source``.

    Columns are UTF-8 byte offsets, as ``ast`` reports them, so the splice
    works on the encoded text. Entries are taken in fragment order; an entry
    that overlaps one already taken is skipped, so the leading (fitter)
    entries win.
    """
    taken: List[Tuple[SourceSpan, str]] = []
    for span, replacement in edits:
        if any(span.overlaps(other) or span.is_subspan_of(other) for other, _ in taken):
            continue
        taken.append((span, replacement))

    data = source.encode("utf-8")
    offsets = _line_offsets(data)
    out = data
    # Back to front so earlier offsets stay valid.
    for span, replacement in sorted(taken, key=lambda pair: pair[0], reverse=True):
        start = _offset(offsets, span.start_line, span.start_col, len(data))
        end = _offset(offsets, span.end_line, span.end_col, len(data))
        out = out[:start] + replacement.encode("utf-8") + out[end:]
    return out.decode("utf-8")


@dataclass
class RepairResult:
    """Outcome of a repair run."""

    id: str = field(default_factory=lambda: str(uuid4())[:8])
    status: RepairStatus = RepairStatus.EXHAUSTED
    fixes: List[FixFragment] = field(default_factory=list)
    rounds: int = 0
    fitness_history: List[float] = field(default_factory=list)
    checks: int = 0
    duration_ms: int = 0
    error_message: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.status == RepairStatus.SUCCESS and bool(self.fixes)

    def best(self) -> Optional[FixFragment]:
        """The smallest fix found, if any."""
        if not self.fixes:
            return None
        return min(self.fixes, key=len)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "fixes": [fix.to_dict() for fix in self.fixes],
            "rounds": self.rounds,
            "fitness_history": self.fitness_history,
            "checks": self.checks,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
        }
