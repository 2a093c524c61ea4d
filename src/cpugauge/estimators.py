"""Delta-based CPU utilization estimators.

Every function here is a pure function of two snapshots. Storing the
previous snapshot is the caller's job.
"""

from enum import Enum

from cpugauge.models import ProcessCounterSnapshot, SystemCounterSnapshot, ThreadTimeSnapshot


class Signal(Enum):
    """Non-numeric outcomes of a delta estimate."""

    NEEDS_PRIMING = "needs_priming"  # no previous sample to diff against
    KEEP_PREVIOUS = "keep_previous"  # denominator <= 0


NEEDS_PRIMING = Signal.NEEDS_PRIMING
KEEP_PREVIOUS = Signal.KEEP_PREVIOUS

Estimate = float | Signal


def clamp_percent(value: float) -> float:
    """Clamp a percentage to [0, 100]."""
    return max(0.0, min(100.0, value))


def system_usage(
    previous: SystemCounterSnapshot | None,
    current: SystemCounterSnapshot,
) -> Estimate:
    """Busy share of all CPU time elapsed between two system snapshots."""
    if previous is None or previous.is_empty:
        return NEEDS_PRIMING

    total_delta = current.total_jiffies - previous.total_jiffies
    idle_delta = current.idle_jiffies - previous.idle_jiffies
    if total_delta <= 0:
        return KEEP_PREVIOUS

    return clamp_percent((total_delta - idle_delta) / total_delta * 100.0)


def process_usage(
    previous: ProcessCounterSnapshot | None,
    current: ProcessCounterSnapshot,
) -> Estimate:
    """Share of elapsed uptime the process spent on CPU."""
    if previous is None or previous.is_empty:
        return NEEDS_PRIMING

    process_delta = current.process_jiffies - previous.process_jiffies
    elapsed_delta = current.uptime_jiffies - previous.uptime_jiffies
    if elapsed_delta <= 0:
        return KEEP_PREVIOUS

    return clamp_percent(process_delta / elapsed_delta * 100.0)


def thread_usage(
    previous: ThreadTimeSnapshot | None,
    current: ThreadTimeSnapshot,
) -> Estimate:
    """Share of wall time the calling thread spent on CPU."""
    if previous is None or previous.is_empty:
        return NEEDS_PRIMING

    cpu_delta = current.thread_cpu_nanos - previous.thread_cpu_nanos
    wall_delta = current.wall_nanos - previous.wall_nanos
    if wall_delta <= 0:
        return KEEP_PREVIOUS

    return clamp_percent(cpu_delta / wall_delta * 100.0)
