"""
Property runner: evaluate one program against the properties in a subprocess.

Each check renders a standalone script (context definitions, the patched
program, the property functions and a small driver), runs it under a hard
timeout, and decodes the exit status with the codec in ``checking.codec``.

A property is a Python function taking the repaired function and returning a
bool. Exceptions inside a property count as a failure of that property.
Anything that stops the script from finishing (syntax errors in a candidate,
crashes, timeouts) yields the ``False`` outcome: no information.
"""

from __future__ import annotations

import ast
import inspect
import logging
import tempfile
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from checking import codec
from repair.models import Outcome, Program
from repair.stats import RepairStats
from settings import CheckConfig
from tools import run_script

LOG = logging.getLogger("checking.runner")

DONE_MARKER = "__check_done__"

_DRIVER = """

def _run_property__(prop):
    try:
        return bool(prop({target}))
    except Exception:
        return False


if __name__ == "__main__":
    import sys
    results__ = [_run_property__(p) for p in [{props}]]
    print("{marker}")
    sys.stdout.flush()
    sys.exit(encode_exit_code(results__))
"""


@dataclass(frozen=True)
class Property:
    """A named property function, given as source text."""

    name: str
    source: str

    @classmethod
    def from_source(cls, source: str) -> "Property":
        """Take the property's name from the first function defined in ``source``."""
        source = textwrap.dedent(source).strip() + "\n"
        tree = ast.parse(source)
        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                return cls(name=node.name, source=source)
        raise ValueError(f"No function definition in property source: {source[:60]!r}")


def build_check_script(
    program_text: str,
    target: str,
    properties: Sequence[Property],
    context: Sequence[str] = (),
) -> str:
    parts: List[str] = [inspect.getsource(codec)]
    parts.extend(textwrap.dedent(block).strip() + "\n" for block in context)
    parts.append(program_text.rstrip() + "\n")
    parts.extend(prop.source for prop in properties)
    parts.append(
        _DRIVER.format(
            target=target,
            props=", ".join(prop.name for prop in properties),
            marker=DONE_MARKER,
        )
    )
    return "\n\n".join(parts)


class PropertyRunner:
    """Runs the property checks for one repair problem."""

    def __init__(
        self,
        properties: Sequence[Property],
        target: str,
        context: Sequence[str] = (),
        config: Optional[CheckConfig] = None,
        stats: Optional[RepairStats] = None,
    ) -> None:
        if not properties:
            raise ValueError("At least one property is required")
        self._properties = list(properties)
        self._target = target
        self._context = list(context)
        self._config = config or CheckConfig()
        self._stats = stats or RepairStats()

    @property
    def n_properties(self) -> int:
        return len(self._properties)

    async def run(self, program: Program) -> Outcome:
        """Check ``program`` against every property."""
        script = build_check_script(program.render(), self._target, self._properties, self._context)
        self._stats.count("checks")
        with tempfile.TemporaryDirectory(prefix="_repair_check_") as workdir:
            path = Path(workdir) / "check.py"
            path.write_text(script, encoding="utf-8")
            try:
                result = await run_script(
                    self._config.python_executable,
                    path,
                    timeout=self._config.check_timeout_seconds,
                )
            except OSError as exc:
                LOG.warning("Could not start check for %s: %s", program.name, exc)
                return False

        if result.timed_out:
            self._stats.count("timeouts")
            return False
        if DONE_MARKER not in result.stdout:
            LOG.debug("Check did not finish (exit %d): %.200s", result.exit_code, result.stderr)
            return False
        return codec.decode_exit_code(result.exit_code, len(self._properties))
