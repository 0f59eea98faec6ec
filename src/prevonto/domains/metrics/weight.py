"""API-backed weight history.

The server stores weight in kilograms; the weight screens work in pounds.
Conversion happens here and nowhere else.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone

from prevonto.domains.metrics import adapter
from prevonto.domains.metrics.models import KG_TO_LB, LB_TO_KG, MetricType, WeightEntry
from prevonto.domains.metrics.service import MetricsService
from prevonto.domains.metrics.values import WeightValue

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 3
HISTORY_PAGE_SIZE = 100


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's length."""
    index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class WeightRepository:
    """Weight entries for the signed-in user, newest first."""

    def __init__(self, metrics: MetricsService) -> None:
        self._metrics = metrics
        self._entries: list[WeightEntry] = []

    def fetch_entries(self) -> list[WeightEntry]:
        return list(self._entries)

    async def load_entries(self, now: datetime | None = None) -> list[WeightEntry]:
        """Replace the cached history with the last three months from the server.

        Records whose payload is not a weight are skipped.
        """
        end_date = now or datetime.now(timezone.utc)
        start_date = months_before(end_date, HISTORY_MONTHS)
        response = await self._metrics.list_metrics(
            metric_type=MetricType.WEIGHT,
            start_date=start_date,
            end_date=end_date,
            page_size=HISTORY_PAGE_SIZE,
        )

        entries = []
        for record in response.metrics:
            value = adapter.extract_as(record, WeightValue)
            if value is None:
                logger.debug("Skipping metric %d: no weight in payload", record.id)
                continue
            entries.append(WeightEntry(date=record.measured_at, weight_lb=value.weight * KG_TO_LB))

        entries.sort(key=lambda entry: entry.date, reverse=True)
        self._entries = entries
        return self.fetch_entries()

    async def add_entry(self, weight_lb: float, measured_at: datetime | None = None) -> WeightEntry | None:
        """Record a weight given in pounds.

        Returns the new entry, or None when the server's echo carries no
        readable weight (the record was still created).
        """
        request = adapter.weight(
            weight_lb * LB_TO_KG,
            measured_at=measured_at or datetime.now(timezone.utc),
        )
        record = await self._metrics.create_metric(request)

        value = adapter.extract_as(record, WeightValue)
        if value is None:
            logger.warning("Created weight metric %d has no readable weight", record.id)
            return None
        entry = WeightEntry(date=record.measured_at, weight_lb=value.weight * KG_TO_LB)
        # Keep newest first; a back-dated entry lands among older ones
        index = next(
            (i for i, existing in enumerate(self._entries) if existing.date <= entry.date),
            len(self._entries),
        )
        self._entries.insert(index, entry)
        return entry
