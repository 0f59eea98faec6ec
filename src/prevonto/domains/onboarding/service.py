"""Onboarding service."""

from __future__ import annotations

from prevonto.core.http.executor import HTTPMethod, RequestExecutor
from prevonto.domains.onboarding.models import (
    OnboardingProgressResponse,
    OnboardingRequest,
    OnboardingResponse,
)

ONBOARDING_ENDPOINT = "/api/onboarding/"
PROGRESS_ENDPOINT = "/api/onboarding/progress"
COMPLETE_ENDPOINT = "/api/onboarding/complete"


class OnboardingService:
    def __init__(self, executor: RequestExecutor) -> None:
        self._executor = executor

    async def get_onboarding(self) -> OnboardingResponse:
        return await self._executor.execute(ONBOARDING_ENDPOINT, response_type=OnboardingResponse)

    async def get_progress(self) -> OnboardingProgressResponse:
        return await self._executor.execute(
            PROGRESS_ENDPOINT, response_type=OnboardingProgressResponse
        )

    async def create_or_update(self, request: OnboardingRequest) -> OnboardingResponse:
        """Store the answers given so far; the server merges them into the saved ones."""
        return await self._executor.execute(
            ONBOARDING_ENDPOINT,
            HTTPMethod.POST,
            body=request,
            response_type=OnboardingResponse,
        )

    async def complete(self) -> OnboardingResponse:
        return await self._executor.execute(
            COMPLETE_ENDPOINT, HTTPMethod.POST, response_type=OnboardingResponse
        )
