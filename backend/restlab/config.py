from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """Server settings.

    Values come from the environment first, then a `.env` file in the working
    directory. `BEARER_TOKEN` has no default: a missing token stops startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bearer_token: str = Field(..., min_length=1)

    host: str = "0.0.0.0"
    port: int = Field(default=8080, gt=0, lt=65536)
    log_level: str = "INFO"

    # "memory" swaps the relational store for the in-process one.
    store_backend: Literal["sql", "memory"] = "sql"

    database_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "apiuser"
    db_password: str = "apipassword"
    db_name: str = "restapi"

    db_pool_size: int = Field(default=5, ge=1)
    db_max_overflow: int = Field(default=20, ge=0)
    db_pool_recycle: int = Field(default=300, ge=1)

    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        url = URL.create(
            "postgresql+psycopg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )
        return url.render_as_string(hide_password=False)


class ClientSettings(BaseSettings):
    """Settings for `restlab.client.APIClient.from_settings`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = Field(..., min_length=1)
    bearer_token: str = Field(..., min_length=1)
    api_timeout: float = Field(default=10.0, gt=0)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
