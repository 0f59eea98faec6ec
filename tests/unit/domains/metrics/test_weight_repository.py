"""Tests for the API-backed weight history."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from conftest import metric_body
from prevonto.domains.metrics.models import KG_TO_LB, WeightEntry
from prevonto.domains.metrics.service import MetricsService
from prevonto.domains.metrics.weight import WeightRepository, months_before

NOW = datetime(2025, 10, 30, 12, 0, tzinfo=timezone.utc)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def repository(executor, credentials):
    credentials.save("A1", "R1")
    return WeightRepository(MetricsService(executor))


class TestMonthsBefore:
    def test_simple(self):
        assert months_before(NOW, 3) == datetime(2025, 7, 30, 12, 0, tzinfo=timezone.utc)

    def test_crosses_year(self):
        assert months_before(datetime(2025, 2, 15), 3) == datetime(2024, 11, 15)

    def test_clamps_day(self):
        assert months_before(datetime(2025, 5, 31), 3) == datetime(2025, 2, 28)


class TestLoadEntries:
    def test_three_month_window_newest_first(self, fake_api, repository):
        fake_api.add(
            "GET",
            "/api/metrics/weight",
            json_body={
                "metrics": [
                    metric_body(id=1, measured_at="2025-10-01T08:00:00Z", value={"weight": 70}),
                    metric_body(id=2, measured_at="2025-10-20T08:00:00Z", value={"weight": 69.5}),
                    metric_body(id=3, measured_at="2025-10-10T08:00:00Z", value={}),
                ],
                "total": 3,
                "page": 1,
                "page_size": 100,
            },
        )

        entries = _run(repository.load_entries(now=NOW))

        params = fake_api.requests[0].url.params
        assert params["start_date"] == "2025-07-30T12:00:00.000Z"
        assert params["end_date"] == "2025-10-30T12:00:00.000Z"
        assert params["page_size"] == "100"
        assert [e.date.day for e in entries] == [20, 1]
        assert entries[0].weight_lb == pytest.approx(69.5 * KG_TO_LB)
        assert repository.fetch_entries() == entries


class TestAddEntry:
    def test_pounds_sent_as_kilograms(self, fake_api, repository):
        fake_api.add(
            "POST",
            "/api/metrics/weight",
            status=201,
            json_body=metric_body(id=9, value={"weight": 68.0388}),
        )

        entry = _run(repository.add_entry(150, measured_at=NOW))

        sent = fake_api.body(fake_api.requests[0])
        assert sent["value"]["weight"] == pytest.approx(68.0388)
        assert sent["unit"] == "kg"
        assert isinstance(entry, WeightEntry)
        assert entry.weight_lb == pytest.approx(150, abs=0.01)
        assert repository.fetch_entries()[0] is entry

    def test_back_dated_entry_keeps_newest_first(self, fake_api, repository):
        fake_api.add(
            "GET",
            "/api/metrics/weight",
            json_body={
                "metrics": [
                    metric_body(id=1, measured_at="2025-10-20T08:00:00Z", value={"weight": 69.5}),
                    metric_body(id=2, measured_at="2025-10-01T08:00:00Z", value={"weight": 70}),
                ],
                "total": 2,
                "page": 1,
                "page_size": 100,
            },
        )
        fake_api.add(
            "POST",
            "/api/metrics/weight",
            status=201,
            json_body=metric_body(id=3, measured_at="2025-10-10T08:00:00Z", value={"weight": 69.8}),
        )

        _run(repository.load_entries(now=NOW))
        entry = _run(
            repository.add_entry(154, measured_at=datetime(2025, 10, 10, 8, tzinfo=timezone.utc))
        )

        entries = repository.fetch_entries()
        assert [e.date.day for e in entries] == [20, 10, 1]
        assert entries[1] is entry

    def test_unreadable_echo(self, fake_api, repository):
        fake_api.add("POST", "/api/metrics/weight", status=201, json_body=metric_body(value={}))
        assert _run(repository.add_entry(150, measured_at=NOW)) is None
        assert repository.fetch_entries() == []


class TestWeightEntry:
    def test_unit_conversion(self):
        entry = WeightEntry(date=NOW, weight_lb=100)
        assert entry.weight("lbs") == 100
        assert entry.weight("kg") == pytest.approx(45.3592)

    def test_ids_are_unique(self):
        assert WeightEntry(date=NOW, weight_lb=1).id != WeightEntry(date=NOW, weight_lb=1).id
