"""Prevonto API client: application factory.

This module provides create_client(), which wires the secret store, the
credential store, the request executor and every domain service into one
:class:`PrevontoClient`. Tests pass ``secret_store_override`` and an
``httpx.MockTransport`` instead of touching disk or network.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field

import httpx

from prevonto.core.auth.credentials import CredentialStore
from prevonto.core.config.settings import Settings, get_settings
from prevonto.core.http.executor import RequestExecutor
from prevonto.core.storage.database import SecretDatabase
from prevonto.core.storage.encryption import EncryptionError, SecretEncryptor
from prevonto.core.storage.secrets import EncryptedSecretStore, MemorySecretStore, SecretStore
from prevonto.domains.analytics.service import AnalyticsService
from prevonto.domains.auth.client import AuthClient
from prevonto.domains.insights.service import InsightsService
from prevonto.domains.medications.service import MedicationService
from prevonto.domains.metrics.service import MetricsService
from prevonto.domains.metrics.weight import WeightRepository
from prevonto.domains.onboarding.service import OnboardingService
from prevonto.domains.settings.service import SettingsService

logger = logging.getLogger(__name__)


@dataclass
class PrevontoClient:
    """Every service of the client, sharing one executor and one credential store."""

    credentials: CredentialStore
    executor: RequestExecutor
    auth: AuthClient
    metrics: MetricsService
    weight: WeightRepository
    onboarding: OnboardingService
    settings: SettingsService
    medications: MedicationService
    analytics: AnalyticsService
    insights: InsightsService
    database: SecretDatabase | None = field(default=None, repr=False)

    async def aclose(self) -> None:
        await self.executor.aclose()
        if self.database is not None:
            self.database.close()

    async def __aenter__(self) -> PrevontoClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()


def _open_secret_store(settings: Settings) -> tuple[SecretStore, SecretDatabase | None]:
    """Encrypted SQLite store when a key is configured, else an in-memory one."""
    if not settings.encryption_key:
        logger.warning(
            "No ENCRYPTION_KEY configured; tokens are kept in memory only. "
            "Set ENCRYPTION_KEY to persist the session."
        )
        return MemorySecretStore(), None

    try:
        encryptor = SecretEncryptor(settings.encryption_key)
        database = SecretDatabase(settings.secrets_db_path)
        database.initialize()
    except (EncryptionError, sqlite3.Error, OSError) as exc:
        logger.error("Failed to initialize secret store: %s", exc)
        logger.warning("Continuing with an in-memory secret store")
        return MemorySecretStore(), None

    logger.info(
        "Secret store initialized: %s (schema v%d)",
        settings.secrets_db_path,
        database.get_schema_version(),
    )
    return EncryptedSecretStore(database, encryptor), database


def create_client(
    settings: Settings | None = None,
    *,
    secret_store_override: SecretStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PrevontoClient:
    """Create and wire a PrevontoClient.

    This is the main application factory. It:
    1. Opens the secret store (encrypted SQLite, or memory without a key)
    2. Loads any persisted session into the CredentialStore
    3. Creates the RequestExecutor and registers AuthClient.refresh as its
       refresh handler
    4. Creates the domain services on top of the executor
    """
    settings = settings or get_settings()

    database: SecretDatabase | None = None
    if secret_store_override is not None:
        secrets = secret_store_override
    else:
        secrets, database = _open_secret_store(settings)

    credentials = CredentialStore(secrets)
    if credentials.load() is not None:
        logger.info("Restored saved session")

    executor = RequestExecutor(
        settings.prevonto_api_base_url,
        credentials,
        transport=transport,
        connect_timeout=settings.prevonto_connect_timeout,
        request_timeout=settings.prevonto_request_timeout,
    )
    auth = AuthClient(executor, credentials)
    executor.set_refresh_handler(auth.refresh)

    metrics = MetricsService(executor)
    return PrevontoClient(
        credentials=credentials,
        executor=executor,
        auth=auth,
        metrics=metrics,
        weight=WeightRepository(metrics),
        onboarding=OnboardingService(executor),
        settings=SettingsService(executor, credentials),
        medications=MedicationService(executor),
        analytics=AnalyticsService(executor),
        insights=InsightsService(executor),
        database=database,
    )
