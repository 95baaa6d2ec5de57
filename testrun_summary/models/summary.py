"""Models for aggregated metric values shown in the summary."""

from collections.abc import Sequence
from dataclasses import dataclass

from testrun_summary.cloud.models import (
    Check,
    HttpUrlStat,
    Metric,
    TestRun,
    TestRunSummary,
    Threshold,
)


@dataclass(frozen=True, kw_only=True)
class AggregateSpec:
    """A server-side aggregate to compute for a metric and how to display it.

    An empty label means the formatted value is shown on its own.
    """

    label: str
    value_format: str
    query: str
    muted: bool = False

    def format_value(self, value: float) -> str:
        """Render a computed value with its format template."""
        return self.value_format.format(value)


@dataclass(frozen=True, kw_only=True)
class AggregateResult:
    """Computed value of one aggregate spec."""

    spec: AggregateSpec
    value: float


@dataclass(frozen=True, kw_only=True)
class MetricSummary:
    """A metric together with its aggregates, in table order."""

    metric: Metric
    aggregates: Sequence[AggregateResult]


@dataclass(frozen=True, kw_only=True)
class SummaryData:
    """Everything fetched for a test run before rendering."""

    test_run: TestRun
    summary: TestRunSummary
    metrics: Sequence[MetricSummary]
    thresholds: Sequence[Threshold]
    checks: Sequence[Check]
    http_urls: Sequence[HttpUrlStat]
