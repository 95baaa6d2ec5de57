"""CLI entry point for test run summaries."""

import argparse
import asyncio
import io
import json
import logging
import os
import sys
from collections.abc import Awaitable, Callable, Mapping, Sequence
from functools import partial
from typing import Any

from pydantic import BaseModel, SecretStr

from testrun_summary.cloud import CloudClient, CloudConfig, MetricsSource
from testrun_summary.cloud.config import DEFAULT_API_BASE_URL
from testrun_summary.cloud.models import (
    AggregateQueryResponse,
    HttpUrlStat,
    Metric,
    Threshold,
)
from testrun_summary.errors import SummaryError
from testrun_summary.rendering.sections import http_url_sort_key, metric_sort_key
from testrun_summary.rendering.tables import TableBlock, format_table_blocks
from testrun_summary.report import render_summary

type Command = Callable[[MetricsSource], Awaitable[str]]

log = logging.getLogger("testrun_summary")


def format_table(headings: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Format rows under upper-cased headings with aligned columns."""
    cells = [[h.upper() for h in headings]] + [[str(v) for v in row] for row in rows]
    return "\n".join(format_table_blocks(TableBlock(cells=cells, padding=2)))


def to_json(items: Sequence[BaseModel]) -> str:
    """Serialize API models as a JSON array."""
    return json.dumps([item.model_dump(mode="json") for item in items])


def format_thresholds(thresholds: Sequence[Threshold]) -> str:
    """Format thresholds sorted by name."""
    return format_table(
        ["name", "tainted", "stat", "calculated value"],
        [
            [t.name, t.tainted, t.stat, t.calculated_value]
            for t in sorted(thresholds, key=lambda t: t.name)
        ],
    )


def format_http_urls(urls: Sequence[HttpUrlStat]) -> str:
    """Format url statistics sorted by scenario, name, method and status."""
    return format_table(
        [
            "scenario",
            "method",
            "name",
            "status",
            "expected response",
            "count",
            "min",
            "avg",
            "stdev",
            "p(95)",
            "p(99)",
            "max",
        ],
        [
            [
                u.scenario,
                u.method,
                u.name,
                u.status,
                u.expected_response,
                u.requests_count,
                u.duration.min,
                u.duration.mean,
                u.duration.stdev,
                u.duration.p95,
                u.duration.p99,
                u.duration.max,
            ]
            for u in sorted(urls, key=http_url_sort_key)
        ],
    )


def format_metrics(metrics: Sequence[Metric]) -> str:
    """Format metrics, builtin ones first."""
    return format_table(
        ["name", "type", "origin"],
        [[m.name, m.type, m.origin] for m in sorted(metrics, key=metric_sort_key)],
    )


def format_series_labels(labels: Mapping[str, str]) -> str:
    """Format series labels as a ``{key="value",...}`` selector."""
    pairs = sorted(f'{k}="{v}"' for k, v in labels.items() if k != "__name__")
    return "{" + ",".join(pairs) + "}"


def format_aggregate_response(response: AggregateQueryResponse) -> str:
    """Format one row per series with its first value."""
    rows = sorted(
        (
            [format_series_labels(series.metric), series.values[0][1]]
            for series in response.data.result
            if series.values
        ),
        key=lambda row: row[0],
    )
    return format_table(["labels", "value"], rows)


async def show_summary(
    source: MetricsSource, test_run_id: str, *, color: bool
) -> str:
    """Render the execution summary of a test run."""
    output = io.StringIO()
    await render_summary(source, test_run_id, output, color=color)
    return output.getvalue()


async def show_thresholds(
    source: MetricsSource, test_run_id: str, *, as_json: bool
) -> str:
    """List the thresholds of a test run."""
    thresholds = await source.fetch_thresholds(test_run_id)
    if as_json:
        return to_json(sorted(thresholds, key=lambda t: t.name))
    return format_thresholds(thresholds)


async def show_http_urls(
    source: MetricsSource, test_run_id: str, *, as_json: bool
) -> str:
    """List the http url statistics of a test run."""
    urls = await source.fetch_http_urls(test_run_id)
    if as_json:
        return to_json(sorted(urls, key=http_url_sort_key))
    return format_http_urls(urls)


async def show_metrics(
    source: MetricsSource, test_run_id: str, *, as_json: bool
) -> str:
    """List the metrics of a test run."""
    metrics = await source.fetch_metrics(test_run_id)
    if as_json:
        return to_json(sorted(metrics, key=metric_sort_key))
    return format_metrics(metrics)


async def show_aggregate(
    source: MetricsSource,
    test_run_id: str,
    *,
    metric: str,
    query: str,
    start: str | None,
    end: str | None,
    as_json: bool,
) -> str:
    """Evaluate an aggregate query over a metric of a test run."""
    response = await source.query_aggregate(test_run_id, query, metric, start, end)
    if as_json:
        return response.model_dump_json()
    return format_aggregate_response(response)


async def run(config: CloudConfig, command: Command) -> int:
    """Run a command against the cloud API and return exit code."""
    try:
        async with CloudClient.from_config(config) as client:
            output = await command(client)
    except SummaryError as e:
        log.error("%s", e)
        return 1

    print(output.rstrip("\n"))
    return 0


def build_command(args: argparse.Namespace, *, color: bool) -> Command:
    """Bind the selected subcommand to its arguments."""
    match args.command:
        case "summary":
            return partial(show_summary, test_run_id=args.test_run_id, color=color)
        case "thresholds":
            return partial(
                show_thresholds, test_run_id=args.test_run_id, as_json=args.json
            )
        case "httpurls":
            return partial(
                show_http_urls, test_run_id=args.test_run_id, as_json=args.json
            )
        case "metrics":
            return partial(
                show_metrics, test_run_id=args.test_run_id, as_json=args.json
            )
        case "aggregate":
            return partial(
                show_aggregate,
                test_run_id=args.test_run_id,
                metric=args.metric,
                query=args.query,
                start=args.start,
                end=args.end,
                as_json=args.json,
            )
    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(description="Inspect cloud test run results")
    parser.add_argument(
        "--token",
        default=os.environ.get("K6_CLOUD_TOKEN"),
        help="API token (default: $K6_CLOUD_TOKEN)",
    )
    parser.add_argument(
        "--api-base-url",
        default=os.environ.get("K6_CLOUD_HOST", DEFAULT_API_BASE_URL),
        help="API base URL (default: $K6_CLOUD_HOST or %(default)s)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log progress to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Show test run execution summary")
    summary.add_argument("test_run_id", help="Test run ID")

    for name, help_text in (
        ("thresholds", "List test run thresholds"),
        ("httpurls", "List test run HTTP URLs duration stats"),
        ("metrics", "List metrics in the test run"),
    ):
        listing = subparsers.add_parser(name, help=help_text)
        listing.add_argument("test_run_id", help="Test run ID")
        listing.add_argument("--json", action="store_true", help="Output in JSON")

    aggregate = subparsers.add_parser(
        "aggregate", help="Query metric aggregate values"
    )
    aggregate.add_argument("test_run_id", help="Test run ID")
    aggregate.add_argument(
        "--metric",
        "-m",
        required=True,
        help='Metric name with optional label selector, e.g. http_reqs{status="200"}',
    )
    aggregate.add_argument(
        "--query", required=True, help="Aggregate query, e.g. histogram_avg"
    )
    aggregate.add_argument(
        "--start", "-s", help="Start timestamp (default: test run start)"
    )
    aggregate.add_argument("--end", "-e", help="End timestamp (default: test run end)")
    aggregate.add_argument("--json", action="store_true", help="Output in JSON")

    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.token:
        parser.error("an API token is required (--token or K6_CLOUD_TOKEN)")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = CloudConfig(
        token=SecretStr(args.token),
        api_base_url=args.api_base_url,
        timeout=args.timeout,
    )
    color = not args.no_color and sys.stdout.isatty()

    exit_code = asyncio.run(run(config, build_command(args, color=color)))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
