"""Tests for the procfs CounterSource."""

import os

import pytest

from cpugauge.counters import CounterSource
from cpugauge.errors import SourceUnavailable


class TestSystemCounters:
    """Tests for read_system_counters."""

    def test_sums_seven_fields(self, fake_proc):
        """Test total is the sum of user..softirq and idle is the fourth field."""
        fake_proc.write_stat(user=100, nice=5, system=50, idle=800, iowait=10, irq=3, softirq=2)
        source = CounterSource(fake_proc.root)

        snapshot = source.read_system_counters()

        assert snapshot.total_jiffies == 970
        assert snapshot.idle_jiffies == 800
        assert snapshot.captured_at is not None

    def test_ignores_trailing_fields(self, fake_proc):
        """Test steal/guest columns are not part of the total."""
        (fake_proc.root / "stat").write_text("cpu  1 2 3 4 5 6 7 1000 1000 1000\n")
        source = CounterSource(fake_proc.root)

        assert source.read_system_counters().total_jiffies == 28

    def test_missing_file(self, tmp_path):
        """Test an unreadable source raises SourceUnavailable."""
        source = CounterSource(tmp_path)

        with pytest.raises(SourceUnavailable):
            source.read_system_counters()

    def test_too_few_fields(self, fake_proc):
        """Test fewer than 8 fields raises SourceUnavailable."""
        (fake_proc.root / "stat").write_text("cpu  1 2 3 4 5 6\n")
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_system_counters()

    def test_malformed_number(self, fake_proc):
        """Test non-numeric counters raise SourceUnavailable."""
        (fake_proc.root / "stat").write_text("cpu  1 2 x 4 5 6 7\n")
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_system_counters()


class TestProcessCounters:
    """Tests for read_process_counters."""

    def test_utime_plus_stime(self, fake_proc):
        """Test process jiffies are fields 14 + 15."""
        source = CounterSource(fake_proc.root)

        snapshot = source.read_process_counters()

        assert snapshot.process_jiffies == 500
        assert snapshot.uptime_jiffies == 10000

    def test_comm_with_spaces(self, fake_proc):
        """Test a process name containing spaces does not shift field positions."""
        fake_proc.write_pid_stat(utime=7, stime=8, comm="my worker (2)")
        source = CounterSource(fake_proc.root)

        assert source.read_process_counters().process_jiffies == 15

    def test_uptime_truncated(self, fake_proc):
        """Test uptime seconds are multiplied by the tick rate and truncated."""
        (fake_proc.root / "uptime").write_text("12.349 1.00\n")
        source = CounterSource(fake_proc.root)

        assert source.read_process_counters().uptime_jiffies == 1234

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
    def test_non_finite_uptime(self, fake_proc, value):
        """Test a non-finite uptime raises SourceUnavailable."""
        (fake_proc.root / "uptime").write_text(f"{value} 0.00\n")
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_process_counters()

    def test_configurable_tick_rate(self, fake_proc):
        """Test a non-default tick rate changes the uptime conversion."""
        source = CounterSource(fake_proc.root, clock_ticks=250)

        assert source.read_process_counters().uptime_jiffies == 25000

    def test_explicit_pid(self, fake_proc):
        """Test reading another pid's stat file."""
        other = fake_proc.root / "4242"
        other.mkdir()
        (other / "stat").write_text("4242 (x) S" + " 0" * 10 + " 11 22 0 0\n")
        source = CounterSource(fake_proc.root)

        assert source.read_process_counters(4242).process_jiffies == 33

    def test_empty_line(self, fake_proc):
        """Test an empty stat file raises SourceUnavailable."""
        (fake_proc.root / str(os.getpid()) / "stat").write_text("")
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_process_counters()

    def test_too_few_fields(self, fake_proc):
        """Test fewer than 15 fields raises SourceUnavailable."""
        (fake_proc.root / str(os.getpid()) / "stat").write_text("1 (x) S 1 2 3\n")
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_process_counters()

    def test_missing_uptime(self, fake_proc):
        """Test a missing uptime source raises SourceUnavailable."""
        (fake_proc.root / "uptime").unlink()
        source = CounterSource(fake_proc.root)

        with pytest.raises(SourceUnavailable):
            source.read_process_counters()


def test_thread_time_is_monotonic():
    """Test thread time readings never go backwards."""
    source = CounterSource()

    first = source.read_thread_time()
    sum(range(10000))
    second = source.read_thread_time()

    assert second.wall_nanos >= first.wall_nanos
    assert second.thread_cpu_nanos >= first.thread_cpu_nanos
