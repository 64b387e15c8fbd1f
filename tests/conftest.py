"""
Shared test fixtures and pytest configuration.

Markers:
    @pytest.mark.subprocess  — Spawns real Python interpreters to run property checks

Run without the slow checks:
    pytest -m "not subprocess"
"""

from typing import Tuple

import pytest

from repair.fragments import FixFragment
from repair.locations import SourceSpan
from repair.models import AttemptEntry, Individual, Program


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "subprocess: spawns Python interpreters to run property checks")


# ── Helpers ─────────────────────────────────────────────────────────────────


def span(line: int, start: int = 0, end: int = 5) -> SourceSpan:
    """A single-line span; distinct lines never overlap."""
    return SourceSpan(line, start, line, end)


def fix(*lines: int, text: str = "x") -> FixFragment:
    return FixFragment([(span(line), f"{text}{line}") for line in lines])


def ind(fragment: FixFragment, *passes: bool) -> Individual:
    return Individual(fix=fragment, passes=tuple(passes))


def entry(fragment: FixFragment, outcome) -> AttemptEntry:
    return AttemptEntry(fix=fragment, outcome=outcome if isinstance(outcome, bool) else tuple(outcome))


PAIR_SOURCE = "def pair(x):\n    return (x - 1, x * 3)\n"

PAIR_PROPERTIES: Tuple[str, ...] = (
    "def prop_first(f):\n    return f(1)[0] == 2\n",
    "def prop_second(f):\n    return f(1)[1] == 2\n",
)


@pytest.fixture
def pair_program() -> Program:
    """A two-location bug: each location breaks exactly one property."""
    return Program(source=PAIR_SOURCE, name="pair.py")
