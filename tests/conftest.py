"""Shared fixtures for the cpugauge test suite."""

from pathlib import Path

import pytest
from helpers import FakeProc


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """A fake procfs tree with healthy initial counters."""
    proc = FakeProc(tmp_path / "proc")
    proc.write_stat(user=100, system=50, idle=800)
    proc.write_pid_stat(utime=300, stime=200)
    proc.write_uptime(100.0)
    return proc
