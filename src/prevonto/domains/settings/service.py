"""Account settings service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from prevonto.core.auth.credentials import CredentialStore
from prevonto.core.http.executor import HTTPMethod, RequestExecutor
from prevonto.core.json.dynamic import DynamicObject, compact_object

logger = logging.getLogger(__name__)

DELETE_ACCOUNT_ENDPOINT = "/api/settings/delete-account"
DELETE_CONFIRMATION = "DELETE MY ACCOUNT"


@dataclass
class AccountDeletionRequest:
    password: str | None = field(default=None, repr=False)
    confirmation: str = DELETE_CONFIRMATION

    def to_dynamic(self) -> DynamicObject:
        return compact_object({"password": self.password, "confirmation": self.confirmation})


class SettingsService:
    def __init__(self, executor: RequestExecutor, credentials: CredentialStore) -> None:
        self._executor = executor
        self._credentials = credentials

    async def delete_account(self, password: str | None = None) -> None:
        """Permanently delete the signed-in account, then end the local session.

        Credentials are only cleared once the server has confirmed; a failed
        request leaves the session untouched.
        """
        await self._executor.execute(
            DELETE_ACCOUNT_ENDPOINT,
            HTTPMethod.POST,
            body=AccountDeletionRequest(password=password),
        )
        logger.info("Account deleted; clearing local session")
        self._credentials.clear()
