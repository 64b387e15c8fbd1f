"""
Script execution for property checks.

Checks run as ``<python> <script>`` without a shell in between, so a
timeout kills the interpreter itself.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Union

LOG = logging.getLogger("repair.tools")


@dataclass
class ScriptResult:
    exit_code: int
    stdout: str
    stderr: str
    timed_out: bool = False


async def run_script(python: str, script: Union[str, Path], timeout: float) -> ScriptResult:
    """Run ``script`` with the ``python`` interpreter, in the script's directory."""
    path = Path(script)
    start = time.perf_counter()
    process = await asyncio.create_subprocess_exec(
        python,
        str(path),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(path.parent),
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        stdout_bytes, stderr_bytes = await process.communicate()
        LOG.debug("%s killed after %.1fs", path.name, time.perf_counter() - start)
        return ScriptResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=stdout_bytes.decode(errors="replace"),
            stderr=stderr_bytes.decode(errors="replace"),
            timed_out=True,
        )

    return ScriptResult(
        exit_code=process.returncode,
        stdout=stdout_bytes.decode(errors="replace"),
        stderr=stderr_bytes.decode(errors="replace"),
    )
