"""Composition of the test run summary report."""

import io
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial

from testrun_summary.aggregates import fetch_metric_summaries
from testrun_summary.cloud.base import MetricsSource
from testrun_summary.fetching import gather_in_order
from testrun_summary.models.summary import SummaryData
from testrun_summary.rendering.colors import Palette
from testrun_summary.rendering.sections import (
    write_checks,
    write_http_urls,
    write_metrics,
    write_thresholds,
)
from testrun_summary.rendering.tables import TableBlock, format_table_blocks
from testrun_summary.rendering.writer import IndentedWriter, TextSink

log = logging.getLogger(__name__)

FIELD_LABELS = (
    "execution",
    "duration",
    "vuh cost",
    "metrics",
    "thresholds",
    "checks",
    "http",
)
FIELD_SEPARATOR = "  "


@dataclass(frozen=True)
class Report:
    """Rendered report sections, in display order."""

    sections: Sequence[str]

    @property
    def text(self) -> str:
        """The full report.

        Every section ends with a line break, so joining them on another one
        leaves a blank line between sections.
        """
        return "\n".join(self.sections)


def field_labels() -> Mapping[str, str]:
    """Right-aligned ``label:`` prefixes, all of the same width."""
    lines = format_table_blocks(
        TableBlock(
            cells=[[label, ":"] for label in FIELD_LABELS],
            padding=2,
            align="right",
        )
    )
    return {
        label: line + FIELD_SEPARATOR
        for label, line in zip(FIELD_LABELS, lines, strict=True)
    }


@dataclass(frozen=True, kw_only=True)
class SummaryReporter:
    """Fetches the results of a test run and renders its summary."""

    source: MetricsSource

    async def gather(self, test_run_id: str) -> SummaryData:
        """Fetch everything the summary needs, concurrently.

        Raises:
            SummaryError: The first failure, in fetch order

        """
        log.info("Fetching results of test run %s", test_run_id)
        (
            test_run,
            summary,
            metrics,
            thresholds,
            checks,
            http_urls,
        ) = await gather_in_order(
            [
                partial(self.source.fetch_test_run, test_run_id),
                partial(self.source.fetch_test_run_summary, test_run_id),
                partial(fetch_metric_summaries, self.source, test_run_id),
                partial(self.source.fetch_thresholds, test_run_id),
                partial(self.source.fetch_checks, test_run_id),
                partial(self.source.fetch_http_urls, test_run_id),
            ]
        )
        log.info(
            "Fetched %d metric(s), %d threshold(s), %d check(s), %d url(s)",
            len(metrics),
            len(thresholds),
            len(checks),
            len(http_urls),
        )

        return SummaryData(
            test_run=test_run,
            summary=summary,
            metrics=metrics,
            thresholds=thresholds,
            checks=checks,
            http_urls=http_urls,
        )

    def render(self, data: SummaryData, *, color: bool = False) -> Report:
        """Render fetched data into report sections."""
        palette = Palette(enabled=color)
        labels = field_labels()
        counters = data.summary

        return Report(
            sections=[
                self._render_header(data, labels, palette),
                _render_section(
                    labels["metrics"],
                    partial(write_metrics, summaries=data.metrics, palette=palette),
                ),
                _render_section(
                    labels["thresholds"],
                    partial(
                        write_thresholds,
                        counters=counters.thresholds,
                        thresholds=data.thresholds,
                        palette=palette,
                    ),
                ),
                _render_section(
                    labels["checks"],
                    partial(
                        write_checks,
                        counters=counters.checks,
                        checks=data.checks,
                        palette=palette,
                    ),
                ),
                _render_section(
                    labels["http"],
                    partial(
                        write_http_urls,
                        summary=counters.http,
                        urls=data.http_urls,
                        palette=palette,
                    ),
                ),
            ]
        )

    async def render_summary(
        self, test_run_id: str, sink: TextSink, *, color: bool = False
    ) -> None:
        """Write the summary of a test run to ``sink``.

        Nothing is written unless every fetch succeeded.
        """
        data = await self.gather(test_run_id)
        report = self.render(data, color=color)
        sink.write(report.text)

    @staticmethod
    def _render_header(
        data: SummaryData, labels: Mapping[str, str], palette: Palette
    ) -> str:
        test_run = data.test_run
        rows = [
            ("execution", test_run.execution_mode),
            ("duration", f"{test_run.execution_duration:.2f}s"),
            ("vuh cost", f"{test_run.vuh_cost:.2f} VUh"),
        ]
        return "".join(
            f"{labels[label]}{palette.value(value)}\n" for label, value in rows
        )


def _render_section(label: str, write: Callable[[TextSink], None]) -> str:
    """Render a labelled section, aligning continuation lines under the label."""
    output = io.StringIO()
    output.write(label)
    write(IndentedWriter(output, " " * len(label)))

    text = output.getvalue()
    return text if text.endswith("\n") else text + "\n"


async def render_summary(
    source: MetricsSource, test_run_id: str, sink: TextSink, *, color: bool = False
) -> None:
    """Fetch the results of a test run and write its summary to ``sink``."""
    reporter = SummaryReporter(source=source)
    await reporter.render_summary(test_run_id, sink, color=color)
