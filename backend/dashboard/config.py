"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Client state backend: "memory" or "database".
    # Unset means "database" when DATABASE_URL is given, else "memory".
    state_backend: Literal["memory", "database"] | None = None

    # Database
    database_url: str = ""

    # Client identity
    default_client_id: str = "guest"

    # Market data providers
    http_timeout: float = 10.0
    glassnode_api_key: str = ""
    cryptopanic_api_key: str = ""

    debug: bool = False

    @property
    def resolved_backend(self) -> str:
        """Backend actually selected at startup."""
        if self.state_backend is not None:
            return self.state_backend
        return "database" if self.database_url else "memory"

    def resolve_client_id(self, raw: str | None) -> str:
        """Normalize a caller-supplied client id, falling back to the default."""
        if raw and raw.strip():
            return raw.strip()
        return self.default_client_id


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
