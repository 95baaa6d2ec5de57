"""Pydantic models for the cloud test run API responses."""

from collections.abc import Mapping, Sequence
from typing import Any, Literal

from testrun_summary.models.base import Model

type ExecutionMode = Literal["cloud", "local"]


class TestRun(Model):
    """Metadata of a finished test run."""

    __test__ = False

    id: int
    distribution: Sequence[Any] | None = None
    execution_duration: float = 0.0
    vuh_cost: float = 0.0

    @property
    def execution_mode(self) -> ExecutionMode:
        """Where the run was executed, inferred from its load distribution."""
        return "cloud" if self.distribution else "local"


class PassTotal(Model):
    """Passed/total counters."""

    passed: int
    total: int


class HttpRequestsSummary(Model):
    """Request counters for the whole test run."""

    count: int
    failures: int
    rps_mean: float
    rps_max: float

    @property
    def passed(self) -> int:
        """Number of requests that did not fail."""
        return self.count - self.failures


class TestRunSummary(Model):
    """Aggregate counters of a test run."""

    __test__ = False

    thresholds: PassTotal
    checks: PassTotal
    http: HttpRequestsSummary


class Metric(Model):
    """A metric emitted during a test run."""

    name: str
    type: str
    origin: str = "builtin"


class MetricsResponse(Model):
    """Response from the list metrics API."""

    value: Sequence[Metric]


class Threshold(Model):
    """A threshold and its evaluated value."""

    name: str
    stat: str
    tainted: bool
    calculated_value: float


class ThresholdsResponse(Model):
    """Response from the list thresholds API."""

    value: Sequence[Threshold]


class Check(Model):
    """Outcome counters of a check."""

    name: str
    success_count: int
    fail_count: int
    success_rate: float


class ChecksResponse(Model):
    """Response from the list checks API."""

    value: Sequence[Check]


class DurationStats(Model):
    """Request duration distribution in milliseconds."""

    min: float
    mean: float
    stdev: float
    p95: float
    p99: float
    max: float


class HttpUrlStat(Model):
    """Request statistics for one (scenario, url, method, status) group."""

    scenario: str
    name: str
    method: str
    status: int
    expected_response: bool
    requests_count: int
    duration: DurationStats


class HttpUrlsResponse(Model):
    """Response from the list http urls API."""

    value: Sequence[HttpUrlStat]


class AggregateSeries(Model):
    """One labelled series in an aggregate query result."""

    metric: Mapping[str, str] = {}
    values: Sequence[tuple[float, float]]


class AggregateQueryData(Model):
    """Result section of an aggregate query."""

    result_type: str = "vector"
    result: Sequence[AggregateSeries]


class AggregateQueryResponse(Model):
    """Response from the aggregate query API."""

    status: str = "success"
    data: AggregateQueryData
