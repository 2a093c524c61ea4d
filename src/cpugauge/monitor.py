"""CPU usage estimation engine for cpugauge."""

import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass

import psutil

from cpugauge.config import GaugeConfig
from cpugauge.counters import CounterSource
from cpugauge.errors import MetricUnavailable, SourceUnavailable
from cpugauge.estimators import (
    KEEP_PREVIOUS,
    NEEDS_PRIMING,
    clamp_percent,
    process_usage,
    system_usage,
    thread_usage,
)
from cpugauge.heuristic import HeuristicFallback
from cpugauge.models import (
    ProcessCounterSnapshot,
    StorageInfo,
    SystemCounterSnapshot,
    ThreadTimeSnapshot,
)

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024**3

# A tier returns a percentage, or None to hand over to the next tier.
Tier = Callable[[], float | None]


@dataclass(slots=True)
class SamplingState:
    """Snapshots from the previous sampling call plus the last smoothed value."""

    system: SystemCounterSnapshot | None = None
    process: ProcessCounterSnapshot | None = None
    thread: ThreadTimeSnapshot | None = None
    last_smoothed: float = 0.0

    def reset(self) -> None:
        """Return every counter pair to the uninitialized state."""
        self.system = None
        self.process = None
        self.thread = None
        self.last_smoothed = 0.0


def _first_available(tiers: list[Tier]) -> float | None:
    for tier in tiers:
        value = tier()
        if value is not None:
            return value
    return None


class CpuUsageMonitor:
    """
    Estimates system-wide and per-process CPU utilization.

    Every query advances the sampling state by one sample, so the delta of
    call N+1 is always taken against call N. Queries are serialized by an
    internal lock and never raise for sampling failures; they degrade
    through the fallback tiers instead.
    """

    def __init__(
        self,
        config: GaugeConfig | None = None,
        source: CounterSource | None = None,
        heuristic: HeuristicFallback | None = None,
    ) -> None:
        """
        Initialize the CpuUsageMonitor.

        Args:
            config: Tunables; defaults to GaugeConfig().
            source: Counter reader; defaults to one built from the config.
            heuristic: Last-resort estimator; defaults to one built from the config.
        """
        self._config = config or GaugeConfig()
        self._source = source or CounterSource(self._config.proc_root, self._config.clock_ticks)
        self._heuristic = heuristic or HeuristicFallback(self._config.heuristic_default)
        self._state = SamplingState()
        self._lock = threading.Lock()
        self._pid = os.getpid()
        # Ordered fallback chains; each tier returns None to defer to the next
        self._system_tiers: list[Tier] = [self._system_counter_tier, self._process_usage_locked]
        self._slow_tiers: list[Tier] = [self._process_counter_tier, self._heuristic_tier]

    @property
    def config(self) -> GaugeConfig:
        return self._config

    @property
    def state(self) -> SamplingState:
        """The live sampling state (read it, don't mutate it)."""
        return self._state

    def reset(self) -> None:
        """Forget every stored sample."""
        with self._lock:
            self._state.reset()

    def get_system_cpu_usage(self) -> float:
        """System-wide CPU utilization in percent, 0-100."""
        with self._lock:
            value = _first_available(self._system_tiers)
            return clamp_percent(self._state.last_smoothed if value is None else value)

    def get_process_cpu_usage(self) -> float:
        """Smoothed CPU utilization of this process in percent, 0-100."""
        with self._lock:
            return self._process_usage_locked()

    def get_memory_usage_mb(self) -> float:
        """Proportional set size of this process in MB (RSS where PSS is missing)."""
        try:
            proc = psutil.Process(self._pid)
            try:
                used = proc.memory_full_info().pss
            except (AttributeError, psutil.AccessDenied):
                used = proc.memory_info().rss
        except (psutil.Error, OSError) as exc:
            raise MetricUnavailable(f"Failed to get memory usage: {exc}", code="MEMORY_ERROR") from exc
        return used / BYTES_PER_MB

    def get_storage_info(self) -> StorageInfo:
        """Used and total size of the configured storage volume in GB."""
        try:
            usage = psutil.disk_usage(self._config.storage_path)
        except OSError as exc:
            raise MetricUnavailable(f"Failed to get storage info: {exc}", code="STORAGE_ERROR") from exc
        return StorageInfo(
            used_gb=(usage.total - usage.free) / BYTES_PER_GB,
            total_gb=usage.total / BYTES_PER_GB,
        )

    def _system_counter_tier(self) -> float | None:
        try:
            current = self._source.read_system_counters()
        except SourceUnavailable as exc:
            logger.debug("System counters unavailable (%s), using process estimate", exc)
            return None
        except Exception:
            logger.warning("System counter read failed, using process estimate", exc_info=True)
            return None

        result = system_usage(self._state.system, current)
        self._state.system = current

        if result is NEEDS_PRIMING:
            return None
        if result is KEEP_PREVIOUS:
            return self._state.last_smoothed
        return result

    def _process_usage_locked(self) -> float:
        slow: float | None = None
        try:
            current = self._source.read_thread_time()
            previous = self._state.thread
            self._state.thread = current

            fast = thread_usage(previous, current)
            if fast is NEEDS_PRIMING:
                slow = self._slow_path_usage()
                return slow
            if fast is KEEP_PREVIOUS:
                return self._state.last_smoothed

            slow = self._slow_path_usage()
            combined = clamp_percent(max(fast, slow))

            weight = self._config.smoothing_weight
            smoothed = self._state.last_smoothed * (1.0 - weight) + combined * weight
            self._state.last_smoothed = smoothed
            return smoothed
        except Exception:
            logger.warning("Process CPU estimate failed, using slow path", exc_info=True)
            if slow is not None:
                return slow
            try:
                return self._slow_path_usage()
            except Exception:
                logger.warning("Process counter tier failed, using heuristic", exc_info=True)
                return clamp_percent(self._heuristic_tier())

    def _slow_path_usage(self) -> float:
        value = _first_available(self._slow_tiers)
        if value is None:
            value = self._config.heuristic_default
        return clamp_percent(value)

    def _process_counter_tier(self) -> float | None:
        try:
            current = self._source.read_process_counters(self._pid)
        except SourceUnavailable as exc:
            logger.debug("Process counters unavailable (%s), trying heuristic", exc)
            return None

        result = process_usage(self._state.process, current)
        self._state.process = current

        if result is NEEDS_PRIMING:
            return 0.0
        if result is KEEP_PREVIOUS:
            return self._state.last_smoothed
        return result

    def _heuristic_tier(self) -> float:
        return self._heuristic.estimate(self._pid, last_known=self._state.last_smoothed)
