"""Runtime configuration for cpugauge."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

ENV_PREFIX = "CPUGAUGE_"
MIN_POLL_RATE = 0.1


@dataclass(slots=True, frozen=True)
class GaugeConfig:
    """
    Tunables for counter sampling and smoothing.

    Attributes:
        proc_root: Directory holding stat, uptime and <pid>/stat.
        clock_ticks: Kernel ticks per second used to convert uptime seconds.
        smoothing_weight: Weight of the newest sample in the moving average.
        heuristic_default: Result when even the heuristic tier has no inputs.
        storage_path: Mount point reported by get_storage_info().
        poll_rate: Seconds between background samples.
    """

    proc_root: Path = field(default_factory=lambda: Path("/proc"))
    clock_ticks: int = 100
    smoothing_weight: float = 0.7
    heuristic_default: float = 10.0
    storage_path: str = "/"
    poll_rate: float = 5.0

    def __post_init__(self) -> None:
        if self.clock_ticks <= 0:
            raise ValueError(f"clock_ticks must be positive, got {self.clock_ticks}")
        if not 0.0 < self.smoothing_weight <= 1.0:
            raise ValueError(
                f"smoothing_weight must be in (0, 1], got {self.smoothing_weight}"
            )
        # Frozen dataclass: bypass __setattr__ for normalisation
        object.__setattr__(self, "proc_root", Path(self.proc_root))
        object.__setattr__(self, "poll_rate", max(MIN_POLL_RATE, self.poll_rate))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GaugeConfig":
        """
        Build a config from CPUGAUGE_* environment variables.

        Unset variables keep their defaults; unparsable values raise ValueError.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        converters = {
            "proc_root": Path,
            "clock_ticks": int,
            "smoothing_weight": float,
            "heuristic_default": float,
            "storage_path": str,
            "poll_rate": float,
        }
        for name, convert in converters.items():
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            try:
                kwargs[name] = convert(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid {ENV_PREFIX}{name.upper()}={raw!r}") from exc

        return cls(**kwargs)
