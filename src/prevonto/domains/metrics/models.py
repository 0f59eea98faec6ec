"""Wire models for the ``/api/metrics`` endpoints."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from prevonto.core.http.decoding import PayloadReader
from prevonto.core.json.dynamic import DynamicObject, compact_object


class MetricType(str, Enum):
    BLOOD_PRESSURE = "blood_pressure"
    HEART_RATE = "heart_rate"
    BLOOD_GLUCOSE = "blood_glucose"
    SPO2 = "spo2"
    MEDICATION = "medication"
    ENERGY_MOOD = "energy_mood"
    STEPS_ACTIVITY = "steps_activity"
    DAYS_TRACKED = "days_tracked"
    WEIGHT = "weight"


class DataSource(str, Enum):
    MANUAL = "manual"
    HEALTHKIT = "healthkit"
    IMPORT = "import"


@dataclass
class MetricRecord:
    """One stored measurement.

    ``value`` is kept as an untyped DynamicValue object so a record always
    decodes, even when its payload does not fit ``metric_type``. Use
    :func:`prevonto.domains.metrics.adapter.extract` for the typed view.
    """

    id: int
    user_id: int
    metric_type: MetricType
    source: DataSource
    measured_at: datetime
    value: DynamicObject
    created_at: datetime
    updated_at: datetime
    unit: str | None = None
    notes: str | None = None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> MetricRecord:
        return cls(
            id=reader.integer("id"),
            user_id=reader.integer("user_id"),
            metric_type=reader.choice("metric_type", MetricType),
            source=reader.choice("source", DataSource),
            measured_at=reader.timestamp("measured_at"),
            value=reader.mapping("value"),
            created_at=reader.timestamp("created_at"),
            updated_at=reader.timestamp("updated_at"),
            unit=reader.opt_text("unit"),
            notes=reader.opt_text("notes"),
        )


@dataclass
class MetricListResponse:
    metrics: list[MetricRecord]
    total: int
    page: int
    page_size: int

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> MetricListResponse:
        return cls(
            metrics=reader.nested_list("metrics", MetricRecord),
            total=reader.integer("total"),
            page=reader.integer("page"),
            page_size=reader.integer("page_size"),
        )


@dataclass
class MetricCreateRequest:
    """Body of ``POST /api/metrics/{type}``. Build with the adapter helpers."""

    metric_type: MetricType
    measured_at: datetime
    value: DynamicObject
    unit: str | None = None
    notes: str | None = None
    source: DataSource = DataSource.MANUAL
    healthkit_uuid: str | None = None

    def to_dynamic(self) -> DynamicObject:
        return compact_object(
            {
                "metric_type": self.metric_type.value,
                "measured_at": self.measured_at,
                "value": self.value,
                "unit": self.unit,
                "notes": self.notes,
                "source": self.source.value,
                "healthkit_uuid": self.healthkit_uuid,
            }
        )


@dataclass
class MetricUpdateRequest:
    """Body of ``PUT /api/metrics/{type}/{id}``; only set fields are sent."""

    measured_at: datetime | None = None
    value: DynamicObject | None = None
    unit: str | None = None
    notes: str | None = None

    def to_dynamic(self) -> DynamicObject:
        return compact_object(
            {
                "measured_at": self.measured_at,
                "value": self.value,
                "unit": self.unit,
                "notes": self.notes,
            }
        )


LB_TO_KG = 0.453592
KG_TO_LB = 2.20462


@dataclass
class WeightEntry:
    """A weight history row as the weight screens display it (pounds)."""

    date: datetime
    weight_lb: float
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def weight(self, unit: str) -> float:
        """Weight in ``unit`` ("kg" or "lbs")."""
        return self.weight_lb * LB_TO_KG if unit.lower() == "kg" else self.weight_lb
