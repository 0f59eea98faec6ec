"""Metrics service: CRUD over ``/api/metrics``."""

from __future__ import annotations

from datetime import datetime

import httpx

from prevonto.core.http.executor import HTTPMethod, RequestExecutor
from prevonto.core.json.dates import format_datetime
from prevonto.domains.metrics.models import (
    DataSource,
    MetricCreateRequest,
    MetricListResponse,
    MetricRecord,
    MetricType,
    MetricUpdateRequest,
)

METRICS_ENDPOINT = "/api/metrics"


def metric_path(metric_type: MetricType | str, metric_id: int | None = None) -> str:
    path = f"{METRICS_ENDPOINT}/{MetricType(metric_type).value}"
    return path if metric_id is None else f"{path}/{metric_id}"


class MetricsService:
    """List, read, create, update and delete metric records.

    Records come back with an untyped ``value``; pair this service with
    :mod:`prevonto.domains.metrics.adapter` for typed values.
    """

    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def list_metrics(
        self,
        metric_type: MetricType | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        source: DataSource | None = None,
        page: int = 1,
        page_size: int = 50,
    ) -> MetricListResponse:
        params: dict[str, str | int] = {}
        if start_date is not None:
            params["start_date"] = format_datetime(start_date)
        if end_date is not None:
            params["end_date"] = format_datetime(end_date)
        if source is not None:
            params["source"] = DataSource(source).value
        params["page"] = page
        params["page_size"] = page_size

        path = metric_path(metric_type) if metric_type is not None else f"{METRICS_ENDPOINT}/"
        endpoint = f"{path}?{httpx.QueryParams(params)}"
        return await self._executor.execute(endpoint, response_type=MetricListResponse)

    async def get_metric(self, metric_type: MetricType, metric_id: int) -> MetricRecord:
        return await self._executor.execute(
            metric_path(metric_type, metric_id), response_type=MetricRecord
        )

    async def create_metric(self, request: MetricCreateRequest) -> MetricRecord:
        return await self._executor.execute(
            metric_path(request.metric_type),
            HTTPMethod.POST,
            body=request,
            response_type=MetricRecord,
        )

    async def update_metric(
        self, metric_type: MetricType, metric_id: int, update: MetricUpdateRequest
    ) -> MetricRecord:
        return await self._executor.execute(
            metric_path(metric_type, metric_id),
            HTTPMethod.PUT,
            body=update,
            response_type=MetricRecord,
        )

    async def delete_metric(self, metric_type: MetricType, metric_id: int) -> None:
        await self._executor.execute(metric_path(metric_type, metric_id), HTTPMethod.DELETE)
