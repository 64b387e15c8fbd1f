"""
Abstract checker interface.

The repair loop never compiles or runs anything itself. A checker takes a
program (the original plus whatever fix is already layered on it), proposes
candidate fixes for it, and reports how each candidate fares against the
properties under test.

Same ABC + mock pattern as the LLM clients: one abstract base, a scripted
implementation for tests, and concrete backends in their own modules.
"""

from __future__ import annotations

import abc
import logging
from typing import Callable, Dict, List, Optional, Sequence

from repair.fragments import FixFragment
from repair.models import Attempt, AttemptEntry, Outcome, Program

LOG = logging.getLogger("checking.base")


class RepairChecker(abc.ABC):
    """Abstract base class for candidate checkers."""

    @abc.abstractmethod
    async def check_attempt(
        self,
        program: Program,
        held: Optional[FixFragment] = None,
    ) -> Attempt:
        """
        Check every candidate fix for ``program`` against all properties.

        ``held`` is the fix already applied to ``program`` (None for the
        baseline attempt). Candidates that cannot be evaluated must come
        back with a ``False`` outcome rather than raising.
        """
        ...

    @abc.abstractmethod
    async def check_program(self, program: Program) -> Outcome:
        """Check ``program`` as it stands, with no further candidate applied."""
        ...

    async def close(self) -> None:
        """Clean up resources (e.g., temp directories). Override if needed."""
        pass


Responder = Callable[[Program, Optional[FixFragment]], Sequence[AttemptEntry]]


class ScriptedChecker(RepairChecker):
    """
    Checker with canned answers, for tests.

    ``baseline`` answers the first call. Later calls are answered by
    ``responses`` keyed by the held fix's location set, or by ``responder``
    if given. Unknown held fixes get an empty attempt. ``verdicts`` answers
    check_program(), keyed by the location set of the program's edits;
    anything else fails.
    """

    def __init__(
        self,
        baseline: Sequence[AttemptEntry],
        responses: Optional[Dict[frozenset, Sequence[AttemptEntry]]] = None,
        responder: Optional[Responder] = None,
        verdicts: Optional[Dict[frozenset, Outcome]] = None,
    ) -> None:
        self._baseline = list(baseline)
        self._responses = dict(responses or {})
        self._responder = responder
        self._verdicts = dict(verdicts or {})
        self.calls: List[Optional[FixFragment]] = []
        self.programs: List[Program] = []

    async def check_program(self, program: Program) -> Outcome:
        self.programs.append(program)
        return self._verdicts.get(program.edits.key_set(), False)

    async def check_attempt(
        self,
        program: Program,
        held: Optional[FixFragment] = None,
    ) -> Attempt:
        self.calls.append(held)
        if held is None:
            return list(self._baseline)
        if self._responder is not None:
            return list(self._responder(program, held))
        return list(self._responses.get(held.key_set(), []))


def entry(fix: FixFragment, outcome: Outcome) -> AttemptEntry:
    return AttemptEntry(fix=fix, outcome=outcome if isinstance(outcome, bool) else tuple(outcome))
