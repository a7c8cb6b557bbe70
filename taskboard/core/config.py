from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Only ever used outside production.
DEV_JWT_SECRET = "taskboard-dev-secret"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = "development"
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"
    db_echo: bool = False
    create_tables: bool = True

    jwt_secret: str | None = None
    jwt_expires_days: int = 7  # token lifetime
    bcrypt_rounds: int = 10

    log_level: str = "INFO"
    # identity used by the view endpoints when the request carries no token
    fallback_identity: int = 1

    @model_validator(mode="after")
    def require_secret_in_production(self):
        if not self.jwt_secret and self.environment == "production":
            raise ValueError("TASKBOARD_JWT_SECRET must be set in production")
        return self

    @property
    def signing_secret(self) -> str:
        return self.jwt_secret or DEV_JWT_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()
