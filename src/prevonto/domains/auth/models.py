"""Request and response models for the ``/api/auth`` endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from prevonto.core.http.decoding import PayloadReader
from prevonto.core.json.dynamic import DynamicObject, compact_object


@dataclass
class TokenResponse:
    """A freshly issued session: token pair plus expiry metadata."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int | None = None  # seconds until the access token expires

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> TokenResponse:
        return cls(
            access_token=reader.text("access_token"),
            refresh_token=reader.text("refresh_token"),
            token_type=reader.opt_text("token_type") or "bearer",
            expires_in=reader.opt_integer("expires_in"),
        )

    def __repr__(self) -> str:
        return f"TokenResponse(token_type={self.token_type!r}, expires_in={self.expires_in!r})"


@dataclass
class User:
    """The signed-in account as returned by ``/api/auth/me``."""

    id: int
    email: str
    name: str | None
    auth_provider: str
    is_active: bool
    is_verified: bool
    email_verified: bool
    consent_accepted: bool
    consent_version: str | None
    consent_date: datetime | None
    created_at: datetime
    last_login: datetime | None

    @classmethod
    def from_reader(cls, reader: PayloadReader) -> User:
        return cls(
            id=reader.integer("id"),
            email=reader.text("email"),
            name=reader.opt_text("name"),
            auth_provider=reader.text("auth_provider"),
            is_active=reader.flag("is_active"),
            is_verified=reader.flag("is_verified"),
            email_verified=reader.flag("email_verified"),
            consent_accepted=reader.flag("consent_accepted"),
            consent_version=reader.opt_text("consent_version"),
            consent_date=reader.opt_timestamp("consent_date"),
            created_at=reader.timestamp("created_at"),
            last_login=reader.opt_timestamp("last_login"),
        )


@dataclass
class UserRegisterRequest:
    email: str
    password: str = field(repr=False)
    name: str | None = None

    def to_dynamic(self) -> DynamicObject:
        return compact_object({"email": self.email, "password": self.password, "name": self.name})


@dataclass
class UserLoginRequest:
    email: str
    password: str = field(repr=False)

    def to_dynamic(self) -> DynamicObject:
        return compact_object({"email": self.email, "password": self.password})


@dataclass
class RefreshTokenRequest:
    refresh_token: str

    def to_dynamic(self) -> DynamicObject:
        return compact_object({"refresh_token": self.refresh_token})


@dataclass
class ConsentAcceptanceRequest:
    consent_type: str
    version: str
    accepted: bool = True

    def to_dynamic(self) -> DynamicObject:
        return compact_object(
            {"consent_type": self.consent_type, "version": self.version, "accepted": self.accepted}
        )


@dataclass
class UserUpdateRequest:
    name: str | None = None
    email: str | None = None

    def to_dynamic(self) -> DynamicObject:
        return compact_object({"name": self.name, "email": self.email})
