"""Writers for the sections of the test run summary."""

from collections.abc import Sequence

from testrun_summary.cloud.models import (
    Check,
    HttpRequestsSummary,
    HttpUrlStat,
    Metric,
    PassTotal,
    Threshold,
)
from testrun_summary.models.summary import AggregateResult, MetricSummary
from testrun_summary.rendering.colors import FAILURE_GLYPH, SUCCESS_GLYPH, Palette
from testrun_summary.rendering.tables import TableBlock, format_table_blocks
from testrun_summary.rendering.writer import IndentedWriter, TextSink

BUILTIN_ORIGIN = "builtin"
NESTED_PAD = "  "


def metric_sort_key(metric: Metric) -> tuple[bool, str, str]:
    """Order builtin metrics first, then by origin and name."""
    return (metric.origin != BUILTIN_ORIGIN, metric.origin, metric.name)


def http_url_sort_key(url: HttpUrlStat) -> tuple[str, str, str, int]:
    """Order url stats by scenario, name, method and status."""
    return (url.scenario, url.name, url.method, url.status)


def split_threshold_name(name: str) -> tuple[str, str]:
    """Split ``"<expression>:<condition>"`` on its last colon.

    Whitespace is removed from the condition. A name without a colon is
    returned with an empty condition.
    """
    expression, separator, condition = name.rpartition(":")
    if not separator:
        return name, ""
    return expression, "".join(condition.split())


def write_counters(w: TextSink, counters: PassTotal, palette: Palette) -> None:
    """Write a passed/total line."""
    w.write(
        f"{palette.value(str(counters.passed))}/{palette.value(str(counters.total))}\n"
    )


def format_aggregate(result: AggregateResult, palette: Palette) -> str:
    """Render one aggregate value cell, e.g. ``avg=12.34``."""
    spec = result.spec
    value = spec.format_value(result.value)
    if not spec.muted:
        value = palette.value(value)
    cell = f"{spec.label}={value}" if spec.label else value
    return palette.muted(cell) if spec.muted else cell


def write_metrics(
    w: TextSink, summaries: Sequence[MetricSummary], palette: Palette
) -> None:
    """Write one line per metric, builtin metrics first.

    A blank line precedes the first custom metric.
    """
    ordered = sorted(summaries, key=lambda s: metric_sort_key(s.metric))
    if not ordered:
        return

    lines = format_table_blocks(
        TableBlock(
            cells=[[s.metric.name, ": "] for s in ordered],
            padding=3,
            pad_char=".",
        ),
        TableBlock(
            cells=[
                [format_aggregate(a, palette) for a in s.aggregates] for s in ordered
            ],
            padding=1,
        ),
    )

    custom_start = next(
        (i for i, s in enumerate(ordered) if s.metric.origin != BUILTIN_ORIGIN),
        None,
    )
    for index, line in enumerate(lines):
        if index == custom_start:
            print(file=w)
        print(line, file=w)


def write_thresholds(
    w: TextSink,
    counters: PassTotal,
    thresholds: Sequence[Threshold],
    palette: Palette,
) -> None:
    """Write the thresholds counters followed by one line per threshold."""
    write_counters(w, counters, palette)
    if not thresholds:
        return

    ordered = sorted(thresholds, key=lambda t: t.name)
    labels: list[list[str]] = []
    values: list[list[str]] = []
    for threshold in ordered:
        expression, condition = split_threshold_name(threshold.name)
        status = palette.glyph(not threshold.tainted)
        labels.append([f"{status} {expression}", ": "])
        values.append(
            [
                condition,
                f"{threshold.stat}="
                + palette.value(f"{threshold.calculated_value:.2f}"),
            ]
        )

    lines = format_table_blocks(
        TableBlock(cells=labels, padding=3, pad_char="."),
        TableBlock(cells=values, padding=1),
    )
    for line in lines:
        print(line, file=w)


def write_checks(
    w: TextSink, counters: PassTotal, checks: Sequence[Check], palette: Palette
) -> None:
    """Write the checks counters followed by one line per check."""
    write_counters(w, counters, palette)
    if not checks:
        return

    ordered = sorted(checks, key=lambda c: c.name)
    lines = format_table_blocks(
        TableBlock(cells=[[check.name, ": "] for check in ordered]),
        TableBlock(
            cells=[
                [
                    palette.value(f"{check.success_rate * 100:.2f}%"),
                    palette.muted(f"{SUCCESS_GLYPH} {check.success_count}"),
                    palette.muted(f"{FAILURE_GLYPH} {check.fail_count}"),
                ]
                for check in ordered
            ],
            padding=1,
        ),
    )
    for line in lines:
        print(line, file=w)


def write_http_urls(
    w: TextSink,
    summary: HttpRequestsSummary,
    urls: Sequence[HttpUrlStat],
    palette: Palette,
) -> None:
    """Write request counters and per-url statistics grouped by scenario.

    Each scenario gets a header, each endpoint of a scenario a nested header,
    and each (method, status) pair of an endpoint a further nested line.
    """
    w.write(
        "  ".join(
            [
                f"{palette.value(str(summary.passed))}"
                f"/{palette.value(str(summary.count))} requests",
                palette.value(f"{summary.rps_mean:.2f} req/s"),
                palette.muted(f"max={summary.rps_max:.2f} req/s"),
            ]
        )
    )
    if not urls:
        print(file=w)
        return

    ordered = sorted(urls, key=http_url_sort_key)
    lines = format_table_blocks(
        TableBlock(
            cells=[
                [
                    f"{palette.glyph(url.expected_response)} {url.method} ",
                    palette.value(str(url.status)),
                    ": ",
                ]
                for url in ordered
            ]
        ),
        TableBlock(cells=[_duration_cells(url, palette) for url in ordered], padding=1),
    )

    scenario_writer: TextSink = w
    url_writer: TextSink = w
    scenario: str | None = None
    endpoint: str | None = None
    for url, line in zip(ordered, lines, strict=True):
        if url.scenario != scenario:
            scenario, endpoint = url.scenario, None
            print(file=w)
            w.write(palette.value(f"{scenario}:"))
            scenario_writer = IndentedWriter(w, NESTED_PAD)
        if url.name != endpoint:
            endpoint = url.name
            print(file=scenario_writer)
            scenario_writer.write(endpoint)
            url_writer = IndentedWriter(scenario_writer, NESTED_PAD)
            print(file=url_writer)
        print(line, file=url_writer)


def _duration_cells(url: HttpUrlStat, palette: Palette) -> list[str]:
    duration = url.duration
    return [
        "count=" + palette.value(str(url.requests_count)),
        "min=" + palette.value(f"{duration.min:.2f}"),
        "avg=" + palette.value(f"{duration.mean:.2f}"),
        "stdev=" + palette.value(f"{duration.stdev:.2f}"),
        "p(95)=" + palette.value(f"{duration.p95:.2f}"),
        "p(99)=" + palette.value(f"{duration.p99:.2f}"),
        "max=" + palette.value(f"{duration.max:.2f}"),
    ]
