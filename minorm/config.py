"""
Configuration settings for minorm.

Uses Pydantic Settings to load environment variables for the database driver,
connection parameters, mapping defaults and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional
from urllib.parse import quote

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_driver: str = Field("sqlite", alias="DB_DRIVER")
    db_path: str = Field(":memory:", alias="DB_PATH")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("minorm", alias="DB_NAME")
    db_connect_attempts: int = Field(1, ge=1, alias="DB_CONNECT_ATTEMPTS")

    # Mapping
    default_primary_key: str = Field("id", alias="DEFAULT_PRIMARY_KEY")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


def build_dsn(settings: Optional[Settings] = None, **overrides: Any) -> str:
    """
    Compose a PostgreSQL DSN string from settings.

    `overrides` (user, password, host, port, dbname) take precedence over the
    matching settings. User and password are percent-encoded.
    """
    settings = settings or get_settings()
    user = overrides.get("user", settings.db_user)
    password = overrides.get("password", settings.db_password)
    return (
        f"postgresql://{quote(str(user), safe='')}:{quote(str(password), safe='')}"
        f"@{overrides.get('host', settings.db_host)}:{overrides.get('port', settings.db_port)}"
        f"/{overrides.get('dbname', settings.db_name)}"
    )


__all__ = ["Settings", "get_settings", "build_dsn"]
