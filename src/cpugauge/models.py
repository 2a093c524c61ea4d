"""Data models for cpugauge."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class SystemCounterSnapshot:
    """Cumulative system-wide CPU counters since boot."""

    total_jiffies: int
    idle_jiffies: int
    captured_at: float | None = None  # time.monotonic()

    @property
    def is_empty(self) -> bool:
        return self.total_jiffies == 0 and self.idle_jiffies == 0


@dataclass(slots=True, frozen=True)
class ProcessCounterSnapshot:
    """CPU time of the current process against system uptime, same clock base."""

    process_jiffies: int  # utime + stime
    uptime_jiffies: int

    @property
    def is_empty(self) -> bool:
        return self.process_jiffies == 0 and self.uptime_jiffies == 0


@dataclass(slots=True, frozen=True)
class ThreadTimeSnapshot:
    """CPU time of the calling thread against monotonic wall time."""

    thread_cpu_nanos: int
    wall_nanos: int

    @property
    def is_empty(self) -> bool:
        # Either clock reading zero means no usable baseline
        return self.thread_cpu_nanos == 0 or self.wall_nanos == 0


@dataclass(slots=True, frozen=True)
class MemoryInfo:
    """System memory totals used by the heuristic fallback."""

    total_bytes: int
    available_bytes: int


@dataclass(slots=True, frozen=True)
class ProcessImportance:
    """Foreground/background classification of a process (lower = more important)."""

    pid: int
    score: int


@dataclass(slots=True, frozen=True)
class StorageInfo:
    """Storage usage of the data volume."""

    used_gb: float
    total_gb: float
