"""Medication search service."""

from __future__ import annotations

from urllib.parse import quote

import httpx

from prevonto.core.http.errors import HTTPStatusError
from prevonto.core.http.executor import RequestExecutor
from prevonto.domains.medications.models import MedicationSearchResponse, MedicationSearchResult

SEARCH_ENDPOINT = "/api/medications/search"
DETAILS_ENDPOINT = "/api/medications/details"

MIN_QUERY_LENGTH = 2


class MedicationService:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def search(self, query: str, limit: int = 20) -> MedicationSearchResponse:
        """Search the medication catalogue by name.

        Raises:
            HTTPStatusError: ``query`` is shorter than two characters (status
                400, raised locally without a request).
        """
        if len(query) < MIN_QUERY_LENGTH:
            raise HTTPStatusError(400, "Search query must be at least 2 characters")
        params = httpx.QueryParams({"query": query, "limit": limit})
        return await self._executor.execute(
            f"{SEARCH_ENDPOINT}?{params}", response_type=MedicationSearchResponse
        )

    async def get_details(self, name: str) -> MedicationSearchResult:
        return await self._executor.execute(
            f"{DETAILS_ENDPOINT}/{quote(name, safe='')}", response_type=MedicationSearchResult
        )
