"""Application settings and configuration helpers."""
from functools import lru_cache
import os
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseModel):
    """Runtime configuration loaded from environment variables."""

    database_url: str = Field(
        default="sqlite+aiosqlite:///./mealplan.db", alias="DATABASE_URL"
    )
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_pool_timeout: float = Field(default=30.0, alias="DB_POOL_TIMEOUT")

    # No default: tokens are never signed with a placeholder key.
    secret_key: str | None = Field(default=None, alias="SECRET_KEY")

    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_from: str | None = Field(default=None, alias="SMTP_FROM")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
    }

    @property
    def has_signing_key(self) -> bool:
        return bool(self.secret_key)


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    defaults = Settings.model_fields
    return Settings(
        database_url=_env("DATABASE_URL") or defaults["database_url"].default,
        db_pool_size=int(_env("DB_POOL_SIZE") or defaults["db_pool_size"].default),
        db_pool_timeout=float(_env("DB_POOL_TIMEOUT") or defaults["db_pool_timeout"].default),
        secret_key=_env("SECRET_KEY"),
        smtp_host=_env("SMTP_HOST"),
        smtp_port=int(_env("SMTP_PORT") or defaults["smtp_port"].default),
        smtp_user=_env("SMTP_USER"),
        smtp_password=_env("SMTP_PASSWORD"),
        smtp_from=_env("SMTP_FROM"),
        log_level=_env("LOG_LEVEL") or defaults["log_level"].default,
    )
