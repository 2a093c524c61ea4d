"""Last-resort CPU estimate from memory pressure and process importance."""

import logging
import os

import psutil

from cpugauge.errors import HeuristicUnavailable
from cpugauge.models import MemoryInfo, ProcessImportance

logger = logging.getLogger(__name__)

FOREGROUND_SCORE = 100
NICE_SCORE_STEP = 20
FOUND_WEIGHT = 0.5
NOT_FOUND_WEIGHT = 0.3
MIN_IMPORTANCE_FACTOR = 0.1


def importance_from_nice(nice: int) -> int:
    """Map a niceness onto the foreground (100) .. background (480) scale."""
    return FOREGROUND_SCORE + NICE_SCORE_STEP * max(0, nice)


def estimate_from_pressure(memory: MemoryInfo, importance: ProcessImportance | None) -> float:
    """
    Rough CPU estimate from memory pressure.

    Args:
        memory: System memory totals; total_bytes must be positive.
        importance: Classification of the calling process, or None when it
            was not found among running processes.
    """
    pressure = (1.0 - memory.available_bytes / memory.total_bytes) * 100.0
    if importance is None:
        return pressure * NOT_FOUND_WEIGHT

    factor = max(MIN_IMPORTANCE_FACTOR, 1.0 - (importance.score - FOREGROUND_SCORE) / 400.0)
    return pressure * factor * FOUND_WEIGHT


class HeuristicFallback:
    """
    Heuristic tier used when procfs counters cannot be read at all.

    The result is a lower-confidence proxy, not a measurement.
    """

    def __init__(self, default: float = 10.0) -> None:
        self._default = default

    @property
    def default(self) -> float:
        return self._default

    def read_inputs(self, pid: int | None = None) -> tuple[MemoryInfo, ProcessImportance | None]:
        """Collect memory totals and the importance of ``pid`` via psutil."""
        if pid is None:
            pid = os.getpid()

        try:
            mem = psutil.virtual_memory()
        except (psutil.Error, OSError) as exc:
            raise HeuristicUnavailable(f"Cannot read memory info: {exc}") from exc
        if mem.total <= 0:
            raise HeuristicUnavailable("Total memory reported as zero")
        memory = MemoryInfo(total_bytes=mem.total, available_bytes=mem.available)

        importance = None
        try:
            for proc in psutil.process_iter(attrs=["pid", "nice"]):
                info = proc.info
                if info.get("pid") != pid:
                    continue
                importance = ProcessImportance(
                    pid=pid,
                    score=importance_from_nice(info.get("nice") or 0),
                )
                break
        except (psutil.Error, OSError) as exc:
            raise HeuristicUnavailable(f"Cannot list running processes: {exc}") from exc

        return memory, importance

    def estimate(self, pid: int | None = None, last_known: float = 0.0) -> float:
        """Estimate CPU usage; never raises."""
        try:
            memory, importance = self.read_inputs(pid)
        except HeuristicUnavailable as exc:
            fallback = last_known if last_known > 0 else self._default
            logger.debug("Heuristic inputs unavailable (%s), using %.1f", exc, fallback)
            return fallback
        return estimate_from_pressure(memory, importance)
