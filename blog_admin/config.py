"""
Configuration and settings for the blog admin backend.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Any SQLAlchemy URL; SQLite keeps the priority table next to the app.
    database_url: str = Field(default="sqlite+pysqlite:///./blog_admin.db")

    # WordPress REST API (WordPress.com v1.1 style site endpoint)
    wordpress_api_base_url: str = Field(default="")
    wordpress_api_username: str = Field(default="")
    wordpress_api_application_password: str = Field(default="")
    wordpress_request_timeout: float = Field(default=30.0, gt=0)
    wordpress_posts_per_page: int = Field(default=100, ge=1, le=100)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Comma-separated, added to the localhost defaults
    allowed_origins: str = Field(default="")

    def cors_origins(self) -> list[str]:
        defaults = [
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ]
        extra = [o.strip() for o in self.allowed_origins.split(",")]
        return [origin for origin in extra + defaults if origin]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
