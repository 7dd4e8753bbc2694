"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    environment: str = "development"
    debug: bool = False

    # Storage
    database_url: str = "postgresql+asyncpg://pawscan:pawscan_dev_password@db:5432/pawscan"
    storage_backend: str = "postgres"  # "postgres" or "memory"
    create_tables_on_startup: bool = True

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Search
    search_default_limit: int = 10

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
