"""Tests for OnboardingService."""

from __future__ import annotations

import asyncio

import pytest

from prevonto.core.http.errors import ResponseDecodingError
from prevonto.domains.onboarding.models import OnboardingMedicationEntry, OnboardingRequest
from prevonto.domains.onboarding.service import OnboardingService


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _onboarding_body(**overrides):
    body = {
        "id": 3,
        "user_id": 7,
        "gender": "female",
        "current_weight": 150,
        "weight_unit": "lbs",
        "age": 34,
        "fitness_level": None,
        "medications": [{"name": "Metformin", "dosage": "500mg", "frequency": None}],
        "preferred_metrics": ["blood_pressure", "weight"],
        "is_completed": False,
        "completed_at": None,
        "created_at": "2025-10-01T09:00:00.123456",
        "updated_at": "2025-10-02T09:00:00.123456",
    }
    body.update(overrides)
    return body


@pytest.fixture
def service(executor, credentials):
    credentials.save("A1", "R1")
    return OnboardingService(executor)


class TestOnboarding:
    def test_get(self, fake_api, service):
        fake_api.add("GET", "/api/onboarding/", json_body=_onboarding_body())
        data = _run(service.get_onboarding())
        assert data.current_weight == 150.0
        assert data.fitness_level is None
        assert data.medications == [OnboardingMedicationEntry("Metformin", "500mg")]
        assert data.preferred_metrics == ["blood_pressure", "weight"]

    def test_create_or_update_sends_answered_steps_only(self, fake_api, service):
        fake_api.add("POST", "/api/onboarding/", json_body=_onboarding_body())
        request = OnboardingRequest(
            gender="female",
            age=34,
            medications=[OnboardingMedicationEntry("Metformin", dosage="500mg")],
        )
        _run(service.create_or_update(request))
        assert fake_api.body(fake_api.requests[0]) == {
            "gender": "female",
            "age": 34,
            "medications": [{"name": "Metformin", "dosage": "500mg"}],
        }

    def test_progress(self, fake_api, service):
        fake_api.add(
            "GET",
            "/api/onboarding/progress",
            json_body={
                "total_steps": 10,
                "completed_steps": 4,
                "progress_percentage": 40,
                "is_completed": False,
                "missing_steps": ["fitness_level", "sleep_level"],
                "onboarding_data": _onboarding_body(),
            },
        )
        progress = _run(service.get_progress())
        assert progress.progress_percentage == 40.0
        assert progress.missing_steps == ["fitness_level", "sleep_level"]
        assert progress.onboarding_data.user_id == 7

    def test_complete(self, fake_api, service):
        fake_api.add(
            "POST",
            "/api/onboarding/complete",
            json_body=_onboarding_body(is_completed=True, completed_at="2025-10-03T10:00:00Z"),
        )
        data = _run(service.complete())
        assert data.is_completed
        assert data.completed_at.day == 3
        assert fake_api.requests[0].content == b""

    def test_missing_required_field(self, fake_api, service):
        body = _onboarding_body()
        del body["is_completed"]
        fake_api.add("GET", "/api/onboarding/", json_body=body)
        with pytest.raises(ResponseDecodingError, match="is_completed"):
            _run(service.get_onboarding())
