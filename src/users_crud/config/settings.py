from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase, strip_or_none, to_isolation_level


class Settings(BaseSettings):
    """
    Application settings loaded from environment (and an optional `.env` file).
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # HTTP server
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8080

    # Database configuration
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "users"
    POSTGRES_SSLMODE: str | None = None

    # Full URL override (e.g. "sqlite+aiosqlite:///./users.db"); wins over POSTGRES_*
    DATABASE_URL_OVERRIDE: str | None = None

    # Transactions / pool
    DB_ISOLATION_LEVEL: Literal[
        "READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"
    ] = "READ COMMITTED"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # SQLAlchemy
    SQLALCHEMY_ECHO: bool = False

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/users-crud")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the SQLAlchemy URL the engine should connect to.

        - `DATABASE_URL_OVERRIDE`, when set, is returned verbatim.
        - Otherwise the URL is assembled from the POSTGRES_* parts, with
          `POSTGRES_SSLMODE` appended as a query parameter when provided
          (asyncpg spells it `ssl`, psycopg spells it `sslmode`).
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        url = (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )
        if self.POSTGRES_SSLMODE:
            key = "ssl" if self.POSTGRES_DRIVER == "asyncpg" else "sslmode"
            url += f"?{key}={self.POSTGRES_SSLMODE}"
        return url

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Normalize LOG_LEVEL to uppercase before Literal validation runs,
        so `LOG_LEVEL=debug` in `.env` is accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    def normalize_log_format(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @field_validator("DB_ISOLATION_LEVEL", mode="before")
    def normalize_isolation_level(cls, v: str | None) -> str | None:
        return to_isolation_level(v)

    @field_validator("POSTGRES_SSLMODE", "DATABASE_URL_OVERRIDE", mode="before")
    def blank_to_none(cls, v: str | None) -> str | None:
        return strip_or_none(v)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# get_settings() always returns the same settings from the environment,
# so caching it with @lru_cache() avoids re-reading `.env` per call.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
