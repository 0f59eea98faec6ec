"""Typed metric values — one dataclass per metric type."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar

from prevonto.domains.metrics.models import MetricType


@dataclass(frozen=True)
class BloodPressureValue:
    systolic: int
    diastolic: int
    pulse: int | None = None
    metric_type: ClassVar[MetricType] = MetricType.BLOOD_PRESSURE


@dataclass(frozen=True)
class HeartRateValue:
    bpm: int
    metric_type: ClassVar[MetricType] = MetricType.HEART_RATE


@dataclass(frozen=True)
class BloodGlucoseValue:
    value: float
    metric_type: ClassVar[MetricType] = MetricType.BLOOD_GLUCOSE


@dataclass(frozen=True)
class SpO2Value:
    value: float
    metric_type: ClassVar[MetricType] = MetricType.SPO2


@dataclass(frozen=True)
class MedicationValue:
    name: str
    dosage: str
    time_taken: datetime | None = None
    metric_type: ClassVar[MetricType] = MetricType.MEDICATION


@dataclass(frozen=True)
class EnergyMoodValue:
    energy: int
    mood: int
    metric_type: ClassVar[MetricType] = MetricType.ENERGY_MOOD


@dataclass(frozen=True)
class StepsActivityValue:
    steps: int
    distance: float | None = None  # km
    active_minutes: int | None = None
    metric_type: ClassVar[MetricType] = MetricType.STEPS_ACTIVITY


@dataclass(frozen=True)
class WeightValue:
    weight: float
    metric_type: ClassVar[MetricType] = MetricType.WEIGHT


@dataclass(frozen=True)
class DaysTrackedValue:
    days: int
    metric_type: ClassVar[MetricType] = MetricType.DAYS_TRACKED


MetricValue = (
    BloodPressureValue
    | HeartRateValue
    | BloodGlucoseValue
    | SpO2Value
    | MedicationValue
    | EnergyMoodValue
    | StepsActivityValue
    | WeightValue
    | DaysTrackedValue
)
