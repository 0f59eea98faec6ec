"""Typed metric values <-> DynamicValue payloads.

This is the only place where native metric values are translated to and
from the untyped ``value`` object of a metric record:

* :func:`to_payload` embeds the required keys of a value, plus the optional
  ones that are set.
* :func:`from_payload` returns ``None`` rather than raising when a required
  key is missing or of the wrong kind, so one malformed record never breaks
  decoding of the list it arrived in.
* The builder functions (:func:`weight`, :func:`blood_pressure`, ...) produce
  complete :class:`MetricCreateRequest` objects, so calling code never
  assembles a payload by hand.

Usage::

    request = adapter.weight(70.5, measured_at=now)
    record = await metrics.create_metric(request)
    adapter.extract_as(record, WeightValue)  # WeightValue(weight=70.5)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from prevonto.core.json.dynamic import DynamicObject, DynamicValue, compact_object
from prevonto.domains.metrics.models import (
    DataSource,
    MetricCreateRequest,
    MetricRecord,
    MetricType,
    MetricUpdateRequest,
)
from prevonto.domains.metrics.values import (
    BloodGlucoseValue,
    BloodPressureValue,
    DaysTrackedValue,
    EnergyMoodValue,
    HeartRateValue,
    MedicationValue,
    MetricValue,
    SpO2Value,
    StepsActivityValue,
    WeightValue,
)

V = TypeVar("V")

DEFAULT_UNITS: dict[MetricType, str] = {
    MetricType.BLOOD_PRESSURE: "mmHg",
    MetricType.HEART_RATE: "bpm",
    MetricType.BLOOD_GLUCOSE: "mg/dL",
    MetricType.SPO2: "%",
    MetricType.WEIGHT: "kg",
}

# Marks "use the metric type's default unit" as distinct from an explicit None
_DEFAULT = object()


# ---------------------------------------------------------------------------
# Typed value -> payload
# ---------------------------------------------------------------------------

def to_payload(value: MetricValue) -> DynamicObject:
    """Build the ``value`` object for a typed metric value.

    Raises:
        TypeError: ``value`` is not one of the metric value classes.
    """
    if isinstance(value, BloodPressureValue):
        fields: dict[str, Any] = {
            "systolic": value.systolic,
            "diastolic": value.diastolic,
            "pulse": value.pulse,
        }
    elif isinstance(value, HeartRateValue):
        fields = {"bpm": value.bpm}
    elif isinstance(value, (BloodGlucoseValue, SpO2Value)):
        fields = {"value": float(value.value)}
    elif isinstance(value, MedicationValue):
        fields = {"name": value.name, "dosage": value.dosage, "time_taken": value.time_taken}
    elif isinstance(value, EnergyMoodValue):
        fields = {"energy": value.energy, "mood": value.mood}
    elif isinstance(value, StepsActivityValue):
        fields = {
            "steps": value.steps,
            "distance": None if value.distance is None else float(value.distance),
            "active_minutes": value.active_minutes,
        }
    elif isinstance(value, WeightValue):
        fields = {"weight": float(value.weight)}
    elif isinstance(value, DaysTrackedValue):
        fields = {"days": value.days}
    else:
        raise TypeError(f"Not a metric value: {type(value).__name__}")
    return compact_object(fields)


# ---------------------------------------------------------------------------
# Payload -> typed value
# ---------------------------------------------------------------------------

def _int(payload: DynamicValue, key: str) -> int | None:
    item = payload.get(key)
    return item.as_int() if item is not None else None


def _float(payload: DynamicValue, key: str) -> float | None:
    item = payload.get(key)
    return item.as_float() if item is not None else None


def _str(payload: DynamicValue, key: str) -> str | None:
    item = payload.get(key)
    return item.as_str() if item is not None else None


def _datetime(payload: DynamicValue, key: str) -> datetime | None:
    item = payload.get(key)
    return item.as_datetime() if item is not None else None


def _blood_pressure(p: DynamicValue) -> BloodPressureValue | None:
    systolic, diastolic = _int(p, "systolic"), _int(p, "diastolic")
    if systolic is None or diastolic is None:
        return None
    return BloodPressureValue(systolic, diastolic, pulse=_int(p, "pulse"))


def _heart_rate(p: DynamicValue) -> HeartRateValue | None:
    bpm = _int(p, "bpm")
    return HeartRateValue(bpm) if bpm is not None else None


def _blood_glucose(p: DynamicValue) -> BloodGlucoseValue | None:
    reading = _float(p, "value")
    return BloodGlucoseValue(reading) if reading is not None else None


def _spo2(p: DynamicValue) -> SpO2Value | None:
    reading = _float(p, "value")
    return SpO2Value(reading) if reading is not None else None


def _medication(p: DynamicValue) -> MedicationValue | None:
    name, dosage = _str(p, "name"), _str(p, "dosage")
    if name is None or dosage is None:
        return None
    return MedicationValue(name, dosage, time_taken=_datetime(p, "time_taken"))


def _energy_mood(p: DynamicValue) -> EnergyMoodValue | None:
    energy, mood = _int(p, "energy"), _int(p, "mood")
    if energy is None or mood is None:
        return None
    return EnergyMoodValue(energy, mood)


def _steps_activity(p: DynamicValue) -> StepsActivityValue | None:
    steps = _int(p, "steps")
    if steps is None:
        return None
    return StepsActivityValue(
        steps, distance=_float(p, "distance"), active_minutes=_int(p, "active_minutes")
    )


def _weight(p: DynamicValue) -> WeightValue | None:
    weight_kg = _float(p, "weight")
    return WeightValue(weight_kg) if weight_kg is not None else None


def _days_tracked(p: DynamicValue) -> DaysTrackedValue | None:
    days = _int(p, "days")
    return DaysTrackedValue(days) if days is not None else None


_EXTRACTORS: dict[MetricType, Callable[[DynamicValue], Any]] = {
    MetricType.BLOOD_PRESSURE: _blood_pressure,
    MetricType.HEART_RATE: _heart_rate,
    MetricType.BLOOD_GLUCOSE: _blood_glucose,
    MetricType.SPO2: _spo2,
    MetricType.MEDICATION: _medication,
    MetricType.ENERGY_MOOD: _energy_mood,
    MetricType.STEPS_ACTIVITY: _steps_activity,
    MetricType.WEIGHT: _weight,
    MetricType.DAYS_TRACKED: _days_tracked,
}


def from_payload(metric_type: MetricType | str, payload: DynamicValue) -> MetricValue | None:
    """Read the typed value for ``metric_type`` out of ``payload``.

    Returns None when the payload is not an object or lacks a required key
    of the right kind. Optional keys of the wrong kind read as unset.
    """
    if not isinstance(payload, DynamicObject):
        return None
    return _EXTRACTORS[MetricType(metric_type)](payload)


def extract(record: MetricRecord) -> MetricValue | None:
    """Typed value of a record, according to its own ``metric_type``."""
    return from_payload(record.metric_type, record.value)


def extract_as(record: MetricRecord, value_type: type[V]) -> V | None:
    """Typed value of a record if it is of ``value_type``'s metric type, else None."""
    if record.metric_type != value_type.metric_type:
        return None
    return extract(record)


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------

def create_request(
    value: MetricValue,
    measured_at: datetime,
    *,
    unit: Any = _DEFAULT,
    notes: str | None = None,
    source: DataSource = DataSource.MANUAL,
    healthkit_uuid: str | None = None,
) -> MetricCreateRequest:
    """Create request for any typed value. ``unit`` defaults per metric type."""
    metric_type = value.metric_type
    return MetricCreateRequest(
        metric_type=metric_type,
        measured_at=measured_at,
        value=to_payload(value),
        unit=DEFAULT_UNITS.get(metric_type) if unit is _DEFAULT else unit,
        notes=notes,
        source=source,
        healthkit_uuid=healthkit_uuid,
    )


def update_request(
    value: MetricValue | None = None,
    *,
    measured_at: datetime | None = None,
    unit: str | None = None,
    notes: str | None = None,
) -> MetricUpdateRequest:
    return MetricUpdateRequest(
        measured_at=measured_at,
        value=to_payload(value) if value is not None else None,
        unit=unit,
        notes=notes,
    )


def blood_pressure(
    systolic: int, diastolic: int, pulse: int | None = None, *, measured_at: datetime, **options
) -> MetricCreateRequest:
    return create_request(BloodPressureValue(systolic, diastolic, pulse), measured_at, **options)


def heart_rate(bpm: int, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(HeartRateValue(bpm), measured_at, **options)


def blood_glucose(value: float, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(BloodGlucoseValue(value), measured_at, **options)


def spo2(value: float, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(SpO2Value(value), measured_at, **options)


def medication(
    name: str,
    dosage: str,
    time_taken: datetime | None = None,
    *,
    measured_at: datetime,
    **options,
) -> MetricCreateRequest:
    return create_request(MedicationValue(name, dosage, time_taken), measured_at, **options)


def energy_mood(energy: int, mood: int, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(EnergyMoodValue(energy, mood), measured_at, **options)


def steps_activity(
    steps: int,
    distance: float | None = None,
    active_minutes: int | None = None,
    *,
    measured_at: datetime,
    **options,
) -> MetricCreateRequest:
    return create_request(
        StepsActivityValue(steps, distance, active_minutes), measured_at, **options
    )


def weight(weight_kg: float, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(WeightValue(weight_kg), measured_at, **options)


def days_tracked(days: int, *, measured_at: datetime, **options) -> MetricCreateRequest:
    return create_request(DaysTrackedValue(days), measured_at, **options)
