"""Cloud API client implementation."""

import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import BaseModel, ValidationError

from testrun_summary.cloud.base import MetricsSource
from testrun_summary.cloud.config import CloudConfig
from testrun_summary.cloud.models import (
    AggregateQueryResponse,
    Check,
    ChecksResponse,
    HttpUrlStat,
    HttpUrlsResponse,
    Metric,
    MetricsResponse,
    TestRun,
    TestRunSummary,
    Threshold,
    ThresholdsResponse,
)
from testrun_summary.errors import MalformedAggregateResponseError, RemoteFetchError

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CloudClient(MetricsSource):
    """Metrics source backed by the cloud REST API."""

    config: CloudConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: CloudConfig
    ) -> AsyncGenerator["CloudClient", None]:
        """Create client with managed session lifecycle."""
        headers = {
            "Authorization": f"Token {config.token.get_secret_value()}",
            "Accept": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def fetch_test_run(self, test_run_id: str) -> TestRun:
        """Fetch the test run metadata."""
        url = f"/cloud/v5/test_runs/{test_run_id}"
        return _parse(TestRun, await self._get_json(url), url)

    async def fetch_test_run_summary(self, test_run_id: str) -> TestRunSummary:
        """Fetch the thresholds, checks and http counters of a test run."""
        url = f"/cloud/v5/test_runs/{test_run_id}/summary"
        return _parse(TestRunSummary, await self._get_json(url), url)

    async def fetch_metrics(self, test_run_id: str) -> Sequence[Metric]:
        """Fetch the metrics emitted during a test run."""
        url = f"/cloud/v5/test_runs/{test_run_id}/metrics"
        return _parse(MetricsResponse, await self._get_json(url), url).value

    async def query_aggregate(
        self,
        test_run_id: str,
        query: str,
        metric: str,
        start: str | None = None,
        end: str | None = None,
    ) -> AggregateQueryResponse:
        """Evaluate an aggregate query over a metric."""
        url = f"/cloud/v5/test_runs/{test_run_id}/query_aggregate_k6"
        params = {"query": query, "metric": metric}
        if start:
            params["start"] = start
        if end:
            params["end"] = end

        data = await self._get_json(url, params)
        try:
            return AggregateQueryResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedAggregateResponseError(
                f"Unexpected aggregate response for {query} on {metric}: {e}"
            ) from e

    async def fetch_thresholds(self, test_run_id: str) -> Sequence[Threshold]:
        """Fetch the thresholds of a test run."""
        url = f"/cloud/v5/test_runs/{test_run_id}/thresholds"
        return _parse(ThresholdsResponse, await self._get_json(url), url).value

    async def fetch_checks(self, test_run_id: str) -> Sequence[Check]:
        """Fetch the checks of a test run."""
        url = f"/cloud/v5/test_runs/{test_run_id}/checks"
        return _parse(ChecksResponse, await self._get_json(url), url).value

    async def fetch_http_urls(self, test_run_id: str) -> Sequence[HttpUrlStat]:
        """Fetch per-url http request statistics of a test run."""
        url = f"/cloud/v5/test_runs/{test_run_id}/http_urls"
        return _parse(HttpUrlsResponse, await self._get_json(url), url).value

    async def _get_json(
        self, url: str, params: Mapping[str, str] | None = None
    ) -> Any:
        """Perform a GET request and decode the JSON body."""
        log.debug("GET %s params=%s", url, params)
        try:
            async with self.session.get(url, params=params) as response:
                if response.status != 200:
                    text = await response.text()
                    raise RemoteFetchError(
                        f"Failed to fetch {url}: {response.status} {text}"
                    )
                return await response.json()
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            raise RemoteFetchError(f"Failed to fetch {url}: {e}") from e


def _parse[M: BaseModel](model: type[M], data: Any, url: str) -> M:
    """Validate a response payload, reporting failures as fetch errors."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise RemoteFetchError(f"Unexpected response from {url}: {e}") from e
