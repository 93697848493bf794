from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Local dev: load from .env automatically.
    # In production: you typically inject real env vars instead.
    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    # Env vars:
    # - USER_STORE_BACKEND: "memory" (default) or "sql"
    # - DATABASE_URL (only used by the sql backend; any SQLAlchemy URL)
    # - LOG_LEVEL (optional)
    # - DEBUG (optional; exposes the OpenAPI docs)
    user_store_backend: str = Field(default="memory", validation_alias="USER_STORE_BACKEND")

    # The default is a private in-memory SQLite database, so the sql backend works
    # without any setup. Point it at a file or a server for durability.
    database_url: str = Field(default="sqlite://", validation_alias="DATABASE_URL")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=8000, validation_alias="PORT")

    def model_post_init(self, __context):  # type: ignore[override]
        self.user_store_backend = (self.user_store_backend or "memory").lower().strip()
        # "sqlite"/"database" read naturally in .env files; they mean the ORM store.
        if self.user_store_backend in ("sqlite", "database", "db"):
            self.user_store_backend = "sql"


def get_settings() -> Settings:
    """Load settings from environment.

    Keep this as the single canonical constructor for Settings(). FastAPI
    dependencies and tests can override/monkeypatch this function.
    """
    return Settings()
