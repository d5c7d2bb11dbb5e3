"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Environment
    env: str = Field(default="dev", alias="ENV")
    timezone: str = Field(default="Asia/Seoul", alias="TZ")

    # Database
    postgres_host: str = Field(alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(alias="POSTGRES_DB")
    postgres_user: str = Field(alias="POSTGRES_USER")
    postgres_password: str = Field(alias="POSTGRES_PASSWORD")
    # Full SQLAlchemy URL, takes precedence over the POSTGRES_* parts
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Security
    secret_key: str = Field(alias="SECRET_KEY")
    access_token_expire_minutes: int = Field(
        default=4320, alias="ACCESS_TOKEN_EXPIRE_MINUTES"
    )

    # Transition sweep (daily, local time)
    sweep_hour: int = Field(default=0, alias="SWEEP_HOUR")
    sweep_minute: int = Field(default=0, alias="SWEEP_MINUTE")
    run_sweep_in_web: bool = Field(default=False, alias="RUN_SWEEP_IN_WEB")

    # Studies
    allow_update_after_open: bool = Field(default=False, alias="ALLOW_UPDATE_AFTER_OPEN")
    default_page_size: int = Field(default=20, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=100, alias="MAX_PAGE_SIZE")

    @property
    def database_url(self) -> str:
        """Get async database URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
