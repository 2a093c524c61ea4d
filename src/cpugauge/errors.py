"""Error types for cpugauge."""


class GaugeError(Exception):
    """Base class for cpugauge errors."""

    code = "GAUGE_ERROR"

    def __init__(self, message: str = "", code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class SourceUnavailable(GaugeError):
    """A counter source could not be opened or parsed."""

    code = "SOURCE_UNAVAILABLE"


class HeuristicUnavailable(GaugeError):
    """Memory or process introspection failed."""

    code = "HEURISTIC_UNAVAILABLE"


class MetricUnavailable(GaugeError):
    """A memory or storage snapshot could not be taken."""

    code = "METRIC_UNAVAILABLE"
