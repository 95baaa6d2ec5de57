"""Cloud API data source."""

from testrun_summary.cloud.base import MetricsSource
from testrun_summary.cloud.client import CloudClient
from testrun_summary.cloud.config import CloudConfig

__all__ = ["CloudClient", "CloudConfig", "MetricsSource"]
