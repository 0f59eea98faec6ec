"""Anomaly and insight models produced by the server's analysis endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from prevonto.core.http.decoding import PayloadReader
from prevonto.core.json.dynamic import DynamicObject
from prevonto.domains.metrics.models import MetricType


class AnomalySeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class Anomaly:
    metric_type: MetricType
    detected_at: datetime
    measured_at: datetime
    value: DynamicObject
    severity: AnomalySeverity
    description: str
    id: str | None = None
    expected_range: DynamicObject | None = None
    recommendation: str | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> Anomaly:
        return cls(
            metric_type=reader.choice("metric_type", MetricType),
            detected_at=reader.timestamp("detected_at"),
            measured_at=reader.timestamp("measured_at"),
            value=reader.mapping("value"),
            severity=reader.choice("severity", AnomalySeverity),
            description=reader.text("description"),
            id=reader.opt_text("id"),
            expected_range=reader.opt_mapping("expected_range"),
            recommendation=reader.opt_text("recommendation"),
        )


@dataclass
class Insight:
    id: str
    title: str
    description: str
    generated_at: datetime
    insight_type: str | None = None
    metrics_involved: list[MetricType] | None = None
    confidence: float | None = None  # 0.0 - 1.0
    actionable: bool | None = None
    action_text: str | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> Insight:
        return cls(
            id=reader.text("id"),
            title=reader.text("title"),
            description=reader.text("description"),
            generated_at=reader.timestamp("generated_at"),
            insight_type=reader.opt_text("insight_type"),
            metrics_involved=reader.choices("metrics_involved", MetricType),
            confidence=reader.opt_number("confidence"),
            actionable=reader.opt_flag("actionable"),
            action_text=reader.opt_text("action_text"),
        )


@dataclass
class DailySummary:
    date: datetime
    metrics_tracked: list[MetricType]
    insights: list[Insight]
    anomalies: list[Anomaly]
    summary_text: str
    overall_score: float | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> DailySummary:
        metrics_tracked = reader.choices("metrics_tracked", MetricType)
        if metrics_tracked is None:
            raise reader.fail("expected a list", "metrics_tracked")
        return cls(
            date=reader.timestamp("date"),
            metrics_tracked=metrics_tracked,
            insights=reader.nested_list("insights", Insight),
            anomalies=reader.nested_list("anomalies", Anomaly),
            summary_text=reader.text("summary_text"),
            overall_score=reader.opt_number("overall_score"),
        )
