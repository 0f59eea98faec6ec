"""Insights service: anomalies, generated insights and the daily summary."""

from __future__ import annotations

from datetime import datetime

import httpx

from prevonto.core.http.executor import ListOf, RequestExecutor
from prevonto.core.json.dates import format_datetime
from prevonto.domains.insights.models import Anomaly, DailySummary, Insight
from prevonto.domains.metrics.models import MetricType

ANOMALIES_ENDPOINT = "/api/ai/anomalies"
INSIGHTS_ENDPOINT = "/api/ai/insights"
DAILY_SUMMARY_ENDPOINT = "/api/ai/daily-summary"


def _with_query(endpoint: str, params: dict) -> str:
    if not params:
        return endpoint
    return f"{endpoint}?{httpx.QueryParams(params)}"


class InsightsService:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def get_anomalies(
        self, metric_type: MetricType | None = None, days_back: int | None = None
    ) -> list[Anomaly]:
        params: dict[str, str | int] = {}
        if metric_type is not None:
            params["metric_type"] = MetricType(metric_type).value
        if days_back is not None:
            params["days_back"] = days_back
        return await self._executor.execute(
            _with_query(ANOMALIES_ENDPOINT, params), response_type=ListOf(Anomaly)
        )

    async def get_insights(self, days_back: int | None = None) -> list[Insight]:
        params = {"days_back": days_back} if days_back is not None else {}
        return await self._executor.execute(
            _with_query(INSIGHTS_ENDPOINT, params), response_type=ListOf(Insight)
        )

    async def get_daily_summary(self, date: datetime | None = None) -> DailySummary:
        """Summary for ``date``; the server picks today when omitted."""
        params = {"date": format_datetime(date)} if date is not None else {}
        return await self._executor.execute(
            _with_query(DAILY_SUMMARY_ENDPOINT, params), response_type=DailySummary
        )
