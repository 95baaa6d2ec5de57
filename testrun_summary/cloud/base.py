"""Abstract base class for test run metrics sources."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from testrun_summary.cloud.models import (
    AggregateQueryResponse,
    Check,
    HttpUrlStat,
    Metric,
    TestRun,
    TestRunSummary,
    Threshold,
)
from testrun_summary.errors import MalformedAggregateResponseError


@dataclass(frozen=True, kw_only=True)
class MetricsSource(ABC):
    """Abstract source of test run results.

    Every method performs a single remote call and raises
    :class:`~testrun_summary.errors.RemoteFetchError` when it fails.
    """

    @abstractmethod
    async def fetch_test_run(self, test_run_id: str) -> TestRun:
        """Fetch the test run metadata."""

    @abstractmethod
    async def fetch_test_run_summary(self, test_run_id: str) -> TestRunSummary:
        """Fetch the thresholds, checks and http counters of a test run."""

    @abstractmethod
    async def fetch_metrics(self, test_run_id: str) -> Sequence[Metric]:
        """Fetch the metrics emitted during a test run."""

    @abstractmethod
    async def query_aggregate(
        self,
        test_run_id: str,
        query: str,
        metric: str,
        start: str | None = None,
        end: str | None = None,
    ) -> AggregateQueryResponse:
        """Evaluate an aggregate query over a metric.

        Args:
            test_run_id: Test run identifier
            query: Aggregate query (e.g., "histogram_quantile(0.95)")
            metric: Metric name, optionally with a label selector
            start: Start of the time window (default: test run start)
            end: End of the time window (default: test run end)

        Returns:
            Raw query result, one series per matching label set

        """

    @abstractmethod
    async def fetch_thresholds(self, test_run_id: str) -> Sequence[Threshold]:
        """Fetch the thresholds of a test run."""

    @abstractmethod
    async def fetch_checks(self, test_run_id: str) -> Sequence[Check]:
        """Fetch the checks of a test run."""

    @abstractmethod
    async def fetch_http_urls(self, test_run_id: str) -> Sequence[HttpUrlStat]:
        """Fetch per-url http request statistics of a test run."""

    async def fetch_aggregate_value(
        self,
        test_run_id: str,
        query: str,
        metric: str,
        start: str | None = None,
        end: str | None = None,
    ) -> float:
        """Evaluate an aggregate query expected to produce a single value.

        Raises:
            MalformedAggregateResponseError: If the result is not exactly one
                series holding exactly one value

        """
        response = await self.query_aggregate(test_run_id, query, metric, start, end)

        series = response.data.result
        if len(series) != 1:
            raise MalformedAggregateResponseError(
                f"Expected one series for {query} on {metric}, got {len(series)}"
            )
        if len(series[0].values) != 1:
            raise MalformedAggregateResponseError(
                f"Expected one value for {query} on {metric}, "
                f"got {len(series[0].values)}"
            )

        _, value = series[0].values[0]
        return value
