"""
Timing and counter statistics for a repair session.

A RepairStats instance is created per session and passed explicitly to the
driver and the checker, so concurrent sessions (and parallel test runs) never
share counters.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator

LOG = logging.getLogger("repair.stats")


def format_duration(seconds: float) -> str:
    """``"850ms"`` under a second, ``"1.25s"`` from there on."""
    millis = int(seconds * 1000)
    if millis > 1000:
        return f"{millis / 1000:.2f}s"
    return f"{millis}ms"


class RepairStats:
    """Accumulated wall time per label plus named counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._timings: Dict[str, float] = defaultdict(float)
        self._counters: Dict[str, int] = defaultdict(int)

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            with self._lock:
                self._timings[label] += elapsed
            LOG.debug("%s took %s", label, format_duration(elapsed))

    def count(self, name: str, n: int = 1) -> None:
        with self._lock:
            self._counters[name] += n

    def counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def timing(self, label: str) -> float:
        return self._timings.get(label, 0.0)

    @property
    def timings(self) -> Dict[str, float]:
        return dict(self._timings)

    @property
    def counters(self) -> Dict[str, int]:
        return dict(self._counters)

    def report(self, logger: logging.Logger = LOG, level: int = logging.DEBUG) -> None:
        logger.log(level, "SUMMARY")
        for label, seconds in sorted(self._timings.items()):
            logger.log(level, "<%s> %s", label, format_duration(seconds))
        for name, value in sorted(self._counters.items()):
            logger.log(level, "<%s> %d", name, value)
