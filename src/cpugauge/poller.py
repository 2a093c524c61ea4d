"""Background sampling thread for cpugauge."""

import logging
import threading
from dataclasses import dataclass
from queue import Queue

from cpugauge.config import MIN_POLL_RATE
from cpugauge.errors import MetricUnavailable
from cpugauge.models import StorageInfo
from cpugauge.monitor import CpuUsageMonitor

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TelemetrySnapshot:
    """One round of telemetry readings."""

    system_cpu: float
    process_cpu: float
    memory_mb: float | None  # None when the memory snapshot failed
    storage: StorageInfo | None


class TelemetryPoller:
    """
    Samples a CpuUsageMonitor periodically and pushes TelemetrySnapshots.

    Runs in a separate daemon thread and pushes updates to a thread-safe Queue.
    """

    def __init__(
        self,
        update_queue: Queue[TelemetrySnapshot],
        monitor: CpuUsageMonitor | None = None,
        poll_rate: float = 5.0,
    ) -> None:
        """
        Initialize the TelemetryPoller.

        Args:
            update_queue: Thread-safe queue to push updates to.
            monitor: Estimator to sample; a default CpuUsageMonitor if omitted.
            poll_rate: How often to sample (in seconds). Default 5.0s.
        """
        self._queue = update_queue
        self._monitor = monitor or CpuUsageMonitor()
        self._poll_rate = max(MIN_POLL_RATE, poll_rate)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def monitor(self) -> CpuUsageMonitor:
        return self._monitor

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_POLL_RATE, value)

    @property
    def is_running(self) -> bool:
        """Check if the poller thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the polling thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="TelemetryPoller",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the polling thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _poll_loop(self) -> None:
        """Main polling loop running in the background thread."""
        while not self._stop_event.is_set():
            try:
                self._queue.put(self.collect())
            except Exception:
                logger.warning("Telemetry collection failed", exc_info=True)

            self._stop_event.wait(timeout=self._poll_rate)

    def collect(self) -> TelemetrySnapshot:
        """Take one round of readings."""
        system_cpu = self._monitor.get_system_cpu_usage()
        process_cpu = self._monitor.get_process_cpu_usage()

        try:
            memory_mb = self._monitor.get_memory_usage_mb()
        except MetricUnavailable as exc:
            logger.debug("%s: %s", exc.code, exc)
            memory_mb = None

        try:
            storage = self._monitor.get_storage_info()
        except MetricUnavailable as exc:
            logger.debug("%s: %s", exc.code, exc)
            storage = None

        return TelemetrySnapshot(
            system_cpu=system_cpu,
            process_cpu=process_cpu,
            memory_mb=memory_mb,
            storage=storage,
        )
