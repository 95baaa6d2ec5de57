"""Errors raised while building a test run summary."""


class SummaryError(Exception):
    """Base class for all summary errors."""


class RemoteFetchError(SummaryError):
    """Raised when a call to the metrics service fails."""


class UnknownMetricTypeError(SummaryError):
    """Raised when a metric type has no aggregate queries defined."""

    def __init__(self, metric_type: str) -> None:
        """Keep the offending type for callers."""
        super().__init__(f"unknown metric type: {metric_type}")
        self.metric_type = metric_type


class MalformedAggregateResponseError(SummaryError):
    """Raised when an aggregate query does not return a single value."""
