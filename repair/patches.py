"""
Patch output: unified diffs of repairs, written to numbered files.

Files are named fix1.patch, fix2.patch, ... in the output directory. Existing
files are never replaced unless overwrite is enabled; use a timestamped
directory per run to keep earlier results around.
"""

from __future__ import annotations

import difflib
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from repair.fragments import FixFragment
from repair.models import Program, apply_fix

LOG = logging.getLogger("repair.patches")


def render_diff(program: Program, fix: FixFragment) -> str:
    """Unified diff between the original program and the program with ``fix`` applied."""
    before = program.source.splitlines(keepends=True)
    after = apply_fix(fix, program.original).render().splitlines(keepends=True)
    return "".join(
        difflib.unified_diff(before, after, fromfile=f"a/{program.name}", tofile=f"b/{program.name}")
    )


def timestamped_directory(base: Union[str, Path], now: Optional[datetime] = None) -> Path:
    """``base/output-YYYY-MM-DD-HHH-MMM``, one folder per run."""
    now = now or datetime.now()
    return Path(base) / f"output-{now.strftime('%Y-%m-%d-%HH-%MM')}"


def save_patches(
    patches: Sequence[str],
    directory: Union[str, Path],
    overwrite: bool = False,
) -> List[Path]:
    """
    Write each patch to ``directory/fix<n>.patch``, numbered from 1.

    Raises FileExistsError (before writing anything) if a target file exists
    and ``overwrite`` is False.
    """
    out_dir = Path(directory)
    targets = [out_dir / f"fix{i}.patch" for i in range(1, len(patches) + 1)]
    if not overwrite:
        for path in targets:
            if path.exists():
                raise FileExistsError(f"Patch file already exists, not overwriting: {path}")

    out_dir.mkdir(parents=True, exist_ok=True)
    for path, patch in zip(targets, patches):
        path.write_text(patch, encoding="utf-8")
    LOG.info("Saved %d patches to %s", len(targets), out_dir)
    return targets
