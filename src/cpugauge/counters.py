"""Raw CPU counter readers backed by procfs."""

import os
import time
from pathlib import Path

from cpugauge.errors import SourceUnavailable
from cpugauge.models import ProcessCounterSnapshot, SystemCounterSnapshot, ThreadTimeSnapshot

# user, nice, system, idle, iowait, irq, softirq
SYSTEM_FIELDS = 7
IDLE_INDEX = 3
# utime and stime are fields 14 and 15 (1-indexed) of /proc/<pid>/stat
UTIME_FIELD = 14
STIME_FIELD = 15


def _read_first_line(path: Path) -> str:
    try:
        with path.open("r", encoding="ascii", errors="replace") as handle:
            return handle.readline().strip()
    except OSError as exc:
        raise SourceUnavailable(f"Cannot read {path}: {exc}") from exc


def _split_pid_stat(line: str) -> list[str]:
    """
    Split a /proc/<pid>/stat line into its fields.

    The comm field is wrapped in parentheses and may itself contain spaces,
    so everything up to the last ')' is kept as a single field.
    """
    close = line.rfind(")")
    if close == -1:
        return line.split()
    head, _, rest = line[: close + 1].partition(" ")
    return [head, rest] + line[close + 1 :].split()


class CounterSource:
    """
    Reads cumulative CPU counters.

    Stateless: each call returns a fresh snapshot or raises SourceUnavailable.
    Nothing is cached between calls.
    """

    def __init__(self, proc_root: Path | str = "/proc", clock_ticks: int = 100) -> None:
        """
        Initialize the CounterSource.

        Args:
            proc_root: Root of the procfs tree to read.
            clock_ticks: Ticks per second used to convert uptime to jiffies.
        """
        self._proc_root = Path(proc_root)
        self._clock_ticks = clock_ticks

    @property
    def proc_root(self) -> Path:
        return self._proc_root

    def read_system_counters(self) -> SystemCounterSnapshot:
        """Read the aggregate cpu line of <proc_root>/stat."""
        path = self._proc_root / "stat"
        parts = _read_first_line(path).split()
        if len(parts) < SYSTEM_FIELDS + 1:
            raise SourceUnavailable(f"{path}: expected {SYSTEM_FIELDS + 1} fields, got {len(parts)}")

        try:
            values = [int(v) for v in parts[1 : SYSTEM_FIELDS + 1]]
        except ValueError as exc:
            raise SourceUnavailable(f"{path}: malformed counter: {exc}") from exc

        return SystemCounterSnapshot(
            total_jiffies=sum(values),
            idle_jiffies=values[IDLE_INDEX],
            captured_at=time.monotonic(),
        )

    def read_process_counters(self, pid: int | None = None) -> ProcessCounterSnapshot:
        """Read utime+stime of a process and the system uptime in jiffies."""
        if pid is None:
            pid = os.getpid()

        stat_path = self._proc_root / str(pid) / "stat"
        line = _read_first_line(stat_path)
        if not line:
            raise SourceUnavailable(f"{stat_path}: empty")

        parts = _split_pid_stat(line)
        if len(parts) < STIME_FIELD:
            raise SourceUnavailable(f"{stat_path}: expected {STIME_FIELD} fields, got {len(parts)}")

        uptime_path = self._proc_root / "uptime"
        uptime_parts = _read_first_line(uptime_path).split()
        if not uptime_parts:
            raise SourceUnavailable(f"{uptime_path}: empty")

        try:
            process_jiffies = int(parts[UTIME_FIELD - 1]) + int(parts[STIME_FIELD - 1])
            # nan and inf parse as floats but have no jiffy value
            uptime_jiffies = int(float(uptime_parts[0]) * self._clock_ticks)
        except (ValueError, OverflowError) as exc:
            raise SourceUnavailable(f"Malformed process counters: {exc}") from exc

        return ProcessCounterSnapshot(
            process_jiffies=process_jiffies,
            uptime_jiffies=uptime_jiffies,
        )

    def read_thread_time(self) -> ThreadTimeSnapshot:
        """Read CPU time of the calling thread and monotonic wall time."""
        return ThreadTimeSnapshot(
            thread_cpu_nanos=time.thread_time_ns(),
            wall_nanos=time.monotonic_ns(),
        )
