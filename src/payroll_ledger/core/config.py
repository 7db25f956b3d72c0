import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from payroll_ledger.tax_tables import BUNDLED_TABLES_DIR

BASE_DIR = Path.cwd()


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    app_name: str = "Payroll Ledger API"
    log_level: str = "INFO"
    cors_origins: Annotated[list[AnyHttpUrl], NoDecode] = []
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    tax_table_dir: Path = Field(default=BUNDLED_TABLES_DIR, description="Directory of versioned rate tables")
    tax_table_version: str = "tl_2024_v1"
    ledger_path: Path = Field(default=Path("data/ledger.json"), description="JSON file holding posted entries")

    model_config = SettingsConfigDict(env_prefix="PAYROLL_", extra="ignore")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value: str | list[AnyHttpUrl]) -> list[AnyHttpUrl]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("PAYROLL_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None
