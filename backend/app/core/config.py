# backend/app/core/config.py

from functools import lru_cache
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Users API"
    app_env: str = "dev"
    log_level: str = "INFO"

    # SQLite locally, Postgres in prod (DATABASE_URL)
    database_url: str = "sqlite:///./users.db"
    auto_create_tables: bool = True

    # ✅ one secret for signing + verifying bearer tokens
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080

    # comma-separated allowlist, e.g. "https://app.example.com,http://localhost:3000"
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # off by default: POST /users ignores a client-supplied role_id
    allow_client_role_assignment: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
