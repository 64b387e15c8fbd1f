"""
Memoizing checker.

Different rounds often hand the checker the same patched program again (two
children whose merged fixes render identically). The cache is keyed by an
immutable request tuple and stores the in-flight task before awaiting it, so
concurrent requests for the same key share one computation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Optional, Tuple

from checking.base import RepairChecker
from repair.fragments import FixFragment
from repair.models import Attempt, Outcome, Program
from repair.stats import RepairStats

LOG = logging.getLogger("checking.memo")

RequestKey = Tuple[str, str, FrozenSet]


class MemoizingChecker(RepairChecker):
    """Wraps another checker; at most one computation per unique request."""

    def __init__(self, inner: RepairChecker, stats: Optional[RepairStats] = None) -> None:
        self._inner = inner
        self._stats = stats or RepairStats()
        self._cache: Dict[RequestKey, asyncio.Task] = {}

    @staticmethod
    def request_key(program: Program, held: Optional[FixFragment]) -> RequestKey:
        return ("attempt", program.render(), held.key_set() if held else frozenset())

    def __len__(self) -> int:
        return len(self._cache)

    async def _memoized(self, key: RequestKey, factory: Callable[[], Awaitable[Any]]) -> Any:
        task = self._cache.get(key)
        if task is None:
            # No await between the lookup and the insert.
            task = asyncio.ensure_future(factory())
            self._cache[key] = task
            self._stats.count("memo_misses")
        else:
            LOG.debug("Found cached result for %s", key[0])
            self._stats.count("memo_hits")
        try:
            return await task
        except Exception:
            # Failed computations are not cached.
            if self._cache.get(key) is task:
                del self._cache[key]
            raise

    async def check_attempt(
        self,
        program: Program,
        held: Optional[FixFragment] = None,
    ) -> Attempt:
        key = self.request_key(program, held)
        return list(await self._memoized(key, lambda: self._inner.check_attempt(program, held)))

    async def check_program(self, program: Program) -> Outcome:
        key = ("program", program.render(), frozenset())
        return await self._memoized(key, lambda: self._inner.check_program(program))

    async def close(self) -> None:
        for task in self._cache.values():
            if not task.done():
                task.cancel()
        self._cache.clear()
        await self._inner.close()
