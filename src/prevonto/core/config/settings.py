"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Prevonto API client configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # API
    # iOS simulator default; point at the host's LAN address for a device.
    prevonto_api_base_url: str = "http://localhost:8000"
    prevonto_connect_timeout: float = 30.0
    prevonto_request_timeout: float = 60.0
    prevonto_log_level: str = "info"

    # Secret store
    secrets_db_path: str = "~/.prevonto/secrets.db"

    # Encryption. Empty means tokens are only kept in memory.
    encryption_key: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
