"""Analytics service."""

from __future__ import annotations

from datetime import datetime

import httpx

from prevonto.core.http.executor import RequestExecutor
from prevonto.core.json.dates import format_datetime
from prevonto.domains.analytics.models import StatisticsResponse
from prevonto.domains.metrics.models import MetricType

ANALYTICS_ENDPOINT = "/api/analytics"


class AnalyticsService:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def get_statistics(
        self, metric_type: MetricType, start_date: datetime, end_date: datetime
    ) -> StatisticsResponse:
        """Statistics for ``metric_type`` over a custom ``[start_date, end_date]`` range."""
        params = httpx.QueryParams(
            {
                "range": "custom",
                "start_date": format_datetime(start_date),
                "end_date": format_datetime(end_date),
            }
        )
        endpoint = f"{ANALYTICS_ENDPOINT}/{MetricType(metric_type).value}/statistics?{params}"
        return await self._executor.execute(endpoint, response_type=StatisticsResponse)
