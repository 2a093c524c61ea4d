"""Test doubles shared across the cpugauge test suite."""

import os
from pathlib import Path

from cpugauge.counters import CounterSource
from cpugauge.errors import SourceUnavailable
from cpugauge.heuristic import HeuristicFallback
from cpugauge.models import ProcessCounterSnapshot, SystemCounterSnapshot, ThreadTimeSnapshot


class FakeProc:
    """Writes procfs-style files under a temporary root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.pid = os.getpid()
        (root / str(self.pid)).mkdir(parents=True, exist_ok=True)

    def write_stat(self, user=0, nice=0, system=0, idle=0, iowait=0, irq=0, softirq=0) -> None:
        fields = [user, nice, system, idle, iowait, irq, softirq, 0, 0, 0]
        cpu_line = "cpu  " + " ".join(str(f) for f in fields)
        (self.root / "stat").write_text(cpu_line + "\ncpu0 1 2 3 4 5 6 7 0 0 0\nintr 0\n")

    def write_pid_stat(self, utime: int, stime: int, comm: str = "python") -> None:
        fields = [
            str(self.pid), f"({comm})", "S", "1", str(self.pid), str(self.pid), "0", "-1",
            "4194560", "100", "0", "0", "0", str(utime), str(stime), "0", "0", "20", "0", "1",
        ]
        (self.root / str(self.pid) / "stat").write_text(" ".join(fields) + "\n")

    def write_uptime(self, seconds: float) -> None:
        (self.root / "uptime").write_text(f"{seconds:.2f} 0.00\n")


class ScriptedSource(CounterSource):
    """CounterSource that replays scripted snapshots (or exceptions) in order."""

    def __init__(self, system=(), process=(), thread=()) -> None:
        super().__init__("/nonexistent")
        self.system = list(system)
        self.process = list(process)
        self.thread = list(thread)

    @staticmethod
    def _next(items: list, name: str):
        if not items:
            raise SourceUnavailable(f"{name} script exhausted")
        item = items.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def read_system_counters(self) -> SystemCounterSnapshot:
        return self._next(self.system, "system")

    def read_process_counters(self, pid: int | None = None) -> ProcessCounterSnapshot:
        return self._next(self.process, "process")

    def read_thread_time(self) -> ThreadTimeSnapshot:
        return self._next(self.thread, "thread")


class StubHeuristic(HeuristicFallback):
    """HeuristicFallback returning a fixed value and counting calls."""

    def __init__(self, value: float = 37.5) -> None:
        super().__init__()
        self.value = value
        self.calls = 0

    def estimate(self, pid: int | None = None, last_known: float = 0.0) -> float:
        self.calls += 1
        return self.value


def thread_series(*usages: float, start: int = 1_000_000_000, step: int = 1_000_000_000):
    """Thread-time snapshots whose successive deltas give the requested usages."""
    cpu = 5_000_000
    wall = start
    snapshots = [ThreadTimeSnapshot(thread_cpu_nanos=cpu, wall_nanos=wall)]
    for usage in usages:
        cpu += int(step * usage / 100)
        wall += step
        snapshots.append(ThreadTimeSnapshot(thread_cpu_nanos=cpu, wall_nanos=wall))
    return snapshots
