"""Tests for summary report composition."""

import io
from unittest.mock import Mock

import pytest

from testrun_summary.cloud.base import MetricsSource
from testrun_summary.cloud.models import (
    Check,
    HttpRequestsSummary,
    Metric,
    PassTotal,
    TestRun,
    TestRunSummary,
    Threshold,
)
from testrun_summary.errors import RemoteFetchError, UnknownMetricTypeError
from testrun_summary.report import SummaryReporter, field_labels, render_summary
from testrun_summary.testing.factories import HttpUrlStatFactory

PAD = " " * 15
AGGREGATES = {"increase": 100.0, "rate": 1.5}


@pytest.fixture
def source_mock() -> Mock:
    """Create mock metrics source returning a small test run."""
    source = Mock(spec=MetricsSource)
    source.fetch_test_run.return_value = TestRun(
        id=123, execution_duration=120.0, vuh_cost=1.5
    )
    source.fetch_test_run_summary.return_value = TestRunSummary(
        thresholds=PassTotal(passed=1, total=1),
        checks=PassTotal(passed=1, total=1),
        http=HttpRequestsSummary(count=1, failures=0, rps_mean=1.0, rps_max=1.0),
    )
    source.fetch_metrics.return_value = [Metric(name="http_reqs", type="counter")]
    source.fetch_aggregate_value.side_effect = (
        lambda test_run_id, query, metric, start, end: AGGREGATES[query]
    )
    source.fetch_thresholds.return_value = [
        Threshold(
            name="http_req_duration:p(95)<500",
            stat="p(95)",
            tainted=False,
            calculated_value=320.5,
        )
    ]
    source.fetch_checks.return_value = [
        Check(name="status is 200", success_count=1, fail_count=0, success_rate=1.0)
    ]
    source.fetch_http_urls.return_value = []
    return source


@pytest.fixture
def reporter(source_mock: Mock) -> SummaryReporter:
    """Create reporter with mock source."""
    return SummaryReporter(source=source_mock)


def test_field_labels_are_right_aligned() -> None:
    """All labels end at the same column."""
    labels = field_labels()

    assert labels["execution"] == "   execution:  "
    assert labels["http"] == "        http:  "
    assert {len(label) for label in labels.values()} == {15}


async def test_gather_collects_every_result(
    reporter: SummaryReporter, source_mock: Mock
) -> None:
    """Fetches every resource of the test run."""
    data = await reporter.gather("123")

    assert data.test_run.id == 123
    assert data.summary.thresholds.total == 1
    assert [s.metric.name for s in data.metrics] == ["http_reqs"]
    assert [r.value for r in data.metrics[0].aggregates] == [100.0, 1.5]
    assert len(data.thresholds) == 1
    assert len(data.checks) == 1
    assert data.http_urls == []
    source_mock.fetch_checks.assert_awaited_once_with("123")


async def test_renders_full_report(reporter: SummaryReporter) -> None:
    """Renders every section in order with aligned continuation lines."""
    data = await reporter.gather("123")

    report = reporter.render(data)

    assert report.text == (
        "   execution:  local\n"
        "    duration:  120.00s\n"
        "    vuh cost:  1.50 VUh\n"
        "\n"
        "     metrics:  http_reqs...: 100.00 1.50 u/s\n"
        "\n"
        "  thresholds:  1/1\n"
        f"{PAD}✓ http_req_duration...: p(95)<500 p(95)=320.50\n"
        "\n"
        "      checks:  1/1\n"
        f"{PAD}status is 200: 100.00% ✓ 1 ✗ 0\n"
        "\n"
        "        http:  1/1 requests  1.00 req/s  max=1.00 req/s\n"
    )


async def test_cloud_execution_mode(
    reporter: SummaryReporter, source_mock: Mock
) -> None:
    """Runs with a load distribution are reported as cloud executions."""
    source_mock.fetch_test_run.return_value = TestRun(
        id=123, distribution=[["amazon:us:ashburn", 100]]
    )

    report = reporter.render(await reporter.gather("123"))

    assert report.sections[0].startswith("   execution:  cloud\n")


async def test_custom_metrics_start_below_label(
    reporter: SummaryReporter, source_mock: Mock
) -> None:
    """Without builtin metrics the separator leaves the metrics label alone."""
    source_mock.fetch_metrics.return_value = [
        Metric(name="orders", type="counter", origin="shop")
    ]

    report = reporter.render(await reporter.gather("123"))

    assert report.sections[1] == (
        "     metrics:  \n"
        f"{PAD}orders...: 100.00 1.50 u/s\n"
    )


async def test_http_section_nests_under_label(
    reporter: SummaryReporter, source_mock: Mock
) -> None:
    """Scenario, endpoint and status lines are indented under the label."""
    source_mock.fetch_http_urls.return_value = [
        HttpUrlStatFactory.build(scenario="default", name="https://a"),
        HttpUrlStatFactory.build(scenario="default", name="https://b"),
    ]

    report = reporter.render(await reporter.gather("123"))

    http = report.sections[-1].splitlines()
    assert http[1] == f"{PAD}default:"
    assert http[2] == f"{PAD}  https://a"
    assert http[3].startswith(f"{PAD}    ✓ GET 200: count=")
    assert http[4] == ""
    assert http[5] == f"{PAD}  https://b"


async def test_colored_report_contains_escape_sequences(
    reporter: SummaryReporter,
) -> None:
    """Colors are only emitted when enabled."""
    data = await reporter.gather("123")

    assert "\x1b[" in reporter.render(data, color=True).text
    assert "\x1b[" not in reporter.render(data, color=False).text


async def test_render_summary_writes_report_to_sink(source_mock: Mock) -> None:
    """Writes the whole report to the sink."""
    sink = io.StringIO()

    await render_summary(source_mock, "123", sink)

    assert sink.getvalue().startswith("   execution:  local\n")
    assert sink.getvalue().endswith("max=1.00 req/s\n")


async def test_fetch_failure_writes_nothing(source_mock: Mock) -> None:
    """A failed fetch aborts the report before anything is written."""
    source_mock.fetch_checks.side_effect = RemoteFetchError("checks unavailable")
    sink = io.StringIO()

    with pytest.raises(RemoteFetchError, match="checks unavailable"):
        await render_summary(source_mock, "123", sink)

    assert sink.getvalue() == ""


async def test_first_failure_in_fetch_order_is_raised(source_mock: Mock) -> None:
    """The earliest failed fetch in list order is reported."""
    source_mock.fetch_test_run.side_effect = RemoteFetchError("run unavailable")
    source_mock.fetch_checks.side_effect = RemoteFetchError("checks unavailable")

    with pytest.raises(RemoteFetchError, match="run unavailable"):
        await render_summary(source_mock, "123", io.StringIO())


async def test_unknown_metric_type_aborts_before_aggregates(
    source_mock: Mock,
) -> None:
    """An unknown metric type fails the report without querying aggregates."""
    source_mock.fetch_metrics.return_value = [
        Metric(name="http_reqs", type="counter"),
        Metric(name="mystery", type="unknown"),
    ]
    sink = io.StringIO()

    with pytest.raises(UnknownMetricTypeError) as exc_info:
        await render_summary(source_mock, "123", sink)

    assert exc_info.value.metric_type == "unknown"
    source_mock.fetch_aggregate_value.assert_not_called()
    assert sink.getvalue() == ""
