"""cpugauge - Textual telemetry overlay."""

import argparse
import dataclasses
import logging
from pathlib import Path
from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Footer, Static

from cpugauge.config import GaugeConfig
from cpugauge.monitor import CpuUsageMonitor
from cpugauge.poller import TelemetryPoller, TelemetrySnapshot

logger = logging.getLogger(__name__)

BAR_WIDTH = 20
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def render_bar(percent: float, color: str = "green") -> str:
    """Render a 0-100 percentage as a fixed-width markup bar."""
    filled = min(BAR_WIDTH, max(0, int(percent / (100 / BAR_WIDTH))))
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (BAR_WIDTH - filled)


class StatsPanel(Static):
    """Widget showing CPU, memory and storage readings."""

    DEFAULT_CSS = """
    StatsPanel {
        height: auto;
        min-height: 5;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize StatsPanel."""
        super().__init__(*args, **kwargs)
        self._snapshot: TelemetrySnapshot | None = None

    @property
    def snapshot(self) -> TelemetrySnapshot | None:
        return self._snapshot

    def compose(self) -> ComposeResult:
        """Compose the stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_resource_info(), id="resource-info"),
        )

    def update_stats(self, snapshot: TelemetrySnapshot) -> None:
        """Update the readings from a telemetry snapshot."""
        self._snapshot = snapshot
        try:
            self.query_one("#cpu-info", Static).update(self._get_cpu_info())
            self.query_one("#resource-info", Static).update(self._get_resource_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_cpu_info(self) -> str:
        if self._snapshot is None:
            return "Sampling CPU..."
        system = self._snapshot.system_cpu
        process = self._snapshot.process_cpu
        # Escaped brackets around the bars
        return (
            f"CPU \\[{render_bar(system)}] {system:5.1f}%\n"
            f"App \\[{render_bar(process, 'cyan')}] {process:5.1f}%"
        )

    def _get_resource_info(self) -> str:
        if self._snapshot is None:
            return "Sampling memory..."
        memory = self._snapshot.memory_mb
        storage = self._snapshot.storage
        memory_text = f"{memory:.0f} MB" if memory is not None else "n/a"
        if storage is not None:
            storage_text = f"{storage.used_gb:.2f}G/{storage.total_gb:.2f}G"
        else:
            storage_text = "n/a"
        return f"Memory:  {memory_text}\nStorage: {storage_text}"


class CpuGaugeApp(App):
    """Main cpugauge application."""

    TITLE = "cpugauge"
    SUB_TITLE = "CPU Telemetry"

    CSS = """
    Screen {
        layout: vertical;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #resource-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("r", "reset", "Reset"),
    ]

    def __init__(self, config: GaugeConfig | None = None) -> None:
        """Initialize the CpuGaugeApp."""
        super().__init__()
        self._gauge_config = config or GaugeConfig()
        self._update_queue: Queue[TelemetrySnapshot] = Queue()
        self._poller = TelemetryPoller(
            self._update_queue,
            monitor=CpuUsageMonitor(self._gauge_config),
            poll_rate=self._gauge_config.poll_rate,
        )

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield StatsPanel(id="stats")
        yield Footer()

    def on_mount(self) -> None:
        """Start the poller when the app is mounted."""
        self._poller.start()
        self.set_interval(0.5, self._check_for_updates)

    def _check_for_updates(self) -> None:
        """Drain the queue and show the most recent snapshot."""
        snapshot = None
        while True:
            try:
                snapshot = self._update_queue.get_nowait()
            except Empty:
                break

        if snapshot is not None:
            try:
                self.query_one("#stats", StatsPanel).update_stats(snapshot)
            except Exception:
                logger.debug("Stats panel not ready", exc_info=True)

    def on_unmount(self) -> None:
        """Stop the poller when the app goes away."""
        self._poller.stop()

    def action_reset(self) -> None:
        """Clear sampling state so the next readings re-prime."""
        self._poller.monitor.reset()
        self.notify("Sampling state reset")

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._poller.stop()
        self.exit()


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> logging.Logger:
    """
    Configure the cpugauge logger.

    The terminal belongs to the TUI, so records go to ``log_file`` or nowhere.
    """
    root = logging.getLogger("cpugauge")
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    root.propagate = False

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    if log_file is None:
        root.addHandler(logging.NullHandler())
        return root

    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    return root


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="cpugauge", description="CPU telemetry overlay")
    parser.add_argument("--poll-rate", type=float, default=None, help="seconds between samples")
    parser.add_argument("--proc-root", type=Path, default=None, help="procfs mount point")
    parser.add_argument("--log-level", default="WARNING")
    parser.add_argument("--log-file", type=Path, default=None)
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> GaugeConfig:
    """Environment config overridden by command-line flags."""
    config = GaugeConfig.from_env()
    overrides = {}
    if args.poll_rate is not None:
        overrides["poll_rate"] = args.poll_rate
    if args.proc_root is not None:
        overrides["proc_root"] = args.proc_root
    if overrides:
        config = dataclasses.replace(config, **overrides)
    return config


def main(argv: list[str] | None = None) -> None:
    """Entry point for the cpugauge application."""
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    app = CpuGaugeApp(build_config(args))
    app.run()


if __name__ == "__main__":
    main()
