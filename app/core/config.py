"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL: PostgreSQL connection string with asyncpg driver.
        DATAFORSEO_LOGIN: DataForSEO account login (Basic auth user).
        DATAFORSEO_PASSWORD: DataForSEO API password.
        AHREFS_API_KEY: Ahrefs v3 API token.
        BRON_API_ID: BRON feed account id.
        BRON_API_KEY: BRON feed API key.
        BRON_API_SECRET: BRON feed secret (``kkyy`` query parameter).
        AUDIT_STALE_DAYS: Age after which a saved audit is refreshed.
        AUDIT_BATCH_LIMIT: Maximum audits refreshed per batch run.
        AUDIT_BATCH_DELAY_SECONDS: Pause between domains in batch mode.
        AUDIT_REFRESH_CRON: Crontab expression for the scheduled refresh.
        ENVIRONMENT: Current environment (development, staging, production).
        DEBUG: Enable debug mode.
        CORS_ORIGINS: List of allowed CORS origins.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert database URL to asyncpg format.

        Hosted Postgres providers hand out postgres:// or postgresql://
        but asyncpg requires postgresql+asyncpg://
        """
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://") and "+asyncpg" not in v:
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    DATAFORSEO_LOGIN: str = ""
    DATAFORSEO_PASSWORD: str = ""
    AHREFS_API_KEY: str = ""
    BRON_API_ID: str = ""
    BRON_API_KEY: str = ""
    BRON_API_SECRET: str = ""

    AUDIT_STALE_DAYS: int = 30  # 7 on the weekly deployment
    AUDIT_BATCH_LIMIT: int = 10
    AUDIT_BATCH_DELAY_SECONDS: float = 0.5
    AUDIT_REFRESH_CRON: str = "0 3 * * *"
    SCHEDULER_ENABLED: bool = True

    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | List[str]) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            # Handle JSON-like string or comma-separated
            if v.startswith("["):
                import json
                return json.loads(v.replace("'", '"'))
            return [origin.strip() for origin in v.split(",")]
        return v

    @property
    def has_dataforseo_credentials(self) -> bool:
        """Check if DataForSEO login and password are both set."""
        return bool(self.DATAFORSEO_LOGIN and self.DATAFORSEO_PASSWORD)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()


settings = get_settings()
