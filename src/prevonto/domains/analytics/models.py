"""Statistics models for ``/api/analytics``."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from prevonto.core.http.decoding import PayloadReader
from prevonto.core.json.dynamic import DynamicObject
from prevonto.domains.metrics.models import MetricType


@dataclass
class StatisticsResponse:
    """Aggregates over one metric type for a date range.

    The aggregate objects mirror the metric's value shape (e.g. ``systolic``
    and ``diastolic`` for blood pressure), so they are kept untyped.
    """

    metric_type: MetricType
    range: str
    start_date: datetime
    end_date: datetime
    count: int
    average: DynamicObject
    minimum: DynamicObject
    maximum: DynamicObject
    median: DynamicObject
    std_deviation: DynamicObject
    trend: str | None = None
    change_from_previous: DynamicObject | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> StatisticsResponse:
        return cls(
            metric_type=reader.choice("metric_type", MetricType),
            range=reader.text("range"),
            start_date=reader.timestamp("start_date"),
            end_date=reader.timestamp("end_date"),
            count=reader.integer("count"),
            average=reader.mapping("average"),
            minimum=reader.mapping("minimum"),
            maximum=reader.mapping("maximum"),
            median=reader.mapping("median"),
            std_deviation=reader.mapping("std_deviation"),
            trend=reader.opt_text("trend"),
            change_from_previous=reader.opt_mapping("change_from_previous"),
        )
