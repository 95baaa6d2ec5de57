"""Aggregate queries computed for each metric of a test run."""

import logging
from collections.abc import Mapping, Sequence
from functools import partial

from testrun_summary.cloud.base import MetricsSource
from testrun_summary.errors import UnknownMetricTypeError
from testrun_summary.fetching import gather_in_order
from testrun_summary.models.summary import AggregateResult, AggregateSpec, MetricSummary

log = logging.getLogger(__name__)

RATIO_QUERY = "ratio"

AGGREGATE_SPECS: Mapping[str, Sequence[AggregateSpec]] = {
    "trend": (
        AggregateSpec(label="avg", value_format="{:.2f}", query="histogram_avg"),
        AggregateSpec(label="min", value_format="{:.2f}", query="histogram_min"),
        AggregateSpec(
            label="med", value_format="{:.2f}", query="histogram_quantile(0.5)"
        ),
        AggregateSpec(label="max", value_format="{:.2f}", query="histogram_max"),
        AggregateSpec(
            label="p(90)", value_format="{:.2f}", query="histogram_quantile(0.90)"
        ),
        AggregateSpec(
            label="p(95)", value_format="{:.2f}", query="histogram_quantile(0.95)"
        ),
    ),
    "counter": (
        AggregateSpec(label="", value_format="{:.2f}", query="increase"),
        AggregateSpec(
            label="", value_format="{:.2f} u/s", query="rate", muted=True
        ),
    ),
    "rate": (
        AggregateSpec(label="", value_format="{:.2f}%", query=RATIO_QUERY),
        AggregateSpec(
            label="", value_format="✓ {:.0f}", query="increase_nz", muted=True
        ),
        AggregateSpec(
            label="", value_format="✗ {:.0f}", query="increase_z", muted=True
        ),
    ),
    "gauge": (
        AggregateSpec(label="", value_format="{:.2f}", query="avg"),
        AggregateSpec(label="min", value_format="{:.2f}", query="min", muted=True),
        AggregateSpec(label="max", value_format="{:.2f}", query="max", muted=True),
    ),
}


def resolve_aggregates(metric_type: str) -> Sequence[AggregateSpec]:
    """Return the aggregates to compute for a metric type, in display order.

    Raises:
        UnknownMetricTypeError: If the type is not one of trend, counter,
            rate or gauge

    """
    try:
        return AGGREGATE_SPECS[metric_type]
    except KeyError:
        raise UnknownMetricTypeError(metric_type) from None


async def fetch_aggregate_results(
    source: MetricsSource,
    test_run_id: str,
    metric_name: str,
    specs: Sequence[AggregateSpec],
    start: str | None = None,
    end: str | None = None,
) -> Sequence[AggregateResult]:
    """Compute every aggregate of a metric concurrently.

    Ratios are returned as percentages.

    Args:
        source: Metrics source to query
        test_run_id: Test run identifier
        metric_name: Metric to aggregate
        specs: Aggregates to compute
        start: Optional start of the time window
        end: Optional end of the time window

    Returns:
        One result per spec, in the order of ``specs``

    """
    values = await gather_in_order(
        [
            partial(
                source.fetch_aggregate_value,
                test_run_id,
                spec.query,
                metric_name,
                start,
                end,
            )
            for spec in specs
        ]
    )

    return [
        AggregateResult(
            spec=spec,
            value=value * 100 if spec.query == RATIO_QUERY else value,
        )
        for spec, value in zip(specs, values, strict=True)
    ]


async def fetch_metric_summaries(
    source: MetricsSource, test_run_id: str
) -> Sequence[MetricSummary]:
    """Fetch all metrics of a test run with their aggregate values.

    Every metric type is resolved before the first aggregate query is sent,
    so an unknown type fails without querying anything.
    """
    metrics = await source.fetch_metrics(test_run_id)
    specs = [resolve_aggregates(metric.type) for metric in metrics]

    log.info(
        "Querying %d aggregate(s) for %d metric(s)",
        sum(len(s) for s in specs),
        len(metrics),
    )
    results = await gather_in_order(
        [
            partial(fetch_aggregate_results, source, test_run_id, metric.name, spec)
            for metric, spec in zip(metrics, specs, strict=True)
        ]
    )

    return [
        MetricSummary(metric=metric, aggregates=aggregates)
        for metric, aggregates in zip(metrics, results, strict=True)
    ]
