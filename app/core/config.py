"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
)


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_V1_PREFIX: str = "/api/v1"

    # Embedded SQLite file by default; PostgreSQL works with the same schema.
    DATABASE_URL: str = "sqlite:///./site_users.db"
    # Run Base.metadata.create_all at startup (dev convenience; prod uses alembic).
    CREATE_TABLES_ON_STARTUP: bool = True

    # Bcrypt cost (rounds); 12 keeps a hash in the tens of milliseconds.
    BCRYPT_ROUNDS: int = 12

    USERNAME_MAX_LEN: int = 255
    PASSWORD_MIN_LEN: int = 1
    PASSWORD_MAX_LEN: int = 72

    # Roles granted on self-registration. Empty means no authorities.
    REGISTRATION_DEFAULT_ROLES: list[str] = []
    # Reject a registration whose username already belongs to another user.
    ENFORCE_UNIQUE_USERNAMES: bool = True

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL "
                "(e.g. sqlite:///./site_users.db or postgresql+psycopg2://...)"
            )
        return v

    @field_validator("BCRYPT_ROUNDS")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 16")
        return v

    @field_validator("USERNAME_MAX_LEN")
    @classmethod
    def validate_username_max_len(cls, v: int) -> int:
        if v < 1 or v > 255:
            raise ValueError("USERNAME_MAX_LEN must be between 1 and 255")
        return v

    @field_validator("PASSWORD_MIN_LEN", "PASSWORD_MAX_LEN")
    @classmethod
    def validate_password_len(cls, v: int) -> int:
        # Measured in UTF-8 bytes; bcrypt refuses anything past 72.
        if v < 1 or v > 72:
            raise ValueError("Password length limits must be between 1 and 72")
        return v

    @field_validator("REGISTRATION_DEFAULT_ROLES")
    @classmethod
    def validate_default_roles(cls, v: list[str]) -> list[str]:
        roles = [r.strip() for r in v]
        if any(not r for r in roles):
            raise ValueError("REGISTRATION_DEFAULT_ROLES must not contain empty role names")
        return roles

    @model_validator(mode="after")
    def validate_password_range(self) -> "Settings":
        if self.PASSWORD_MIN_LEN > self.PASSWORD_MAX_LEN:
            raise ValueError("PASSWORD_MIN_LEN must not exceed PASSWORD_MAX_LEN")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()


settings = get_settings()
