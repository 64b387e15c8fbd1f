"""
Checking package: the collaborators that evaluate candidate fixes.

The search core only sees RepairChecker.check_attempt(); everything that
compiles, runs or times out lives here.
"""

from __future__ import annotations

from checking.base import RepairChecker, ScriptedChecker
from checking.codec import MAX_ATTRIBUTABLE, decode_exit_code, encode_exit_code
from checking.memo import MemoizingChecker
from checking.pool import CandidatePoolChecker
from checking.runner import Property, PropertyRunner

__all__ = [
    "CandidatePoolChecker",
    "MAX_ATTRIBUTABLE",
    "MemoizingChecker",
    "Property",
    "PropertyRunner",
    "RepairChecker",
    "ScriptedChecker",
    "decode_exit_code",
    "encode_exit_code",
]
