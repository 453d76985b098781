"""Application configuration."""
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    Environment variables take precedence over .env file.
    SECRET_KEY has no default: tokens cannot be issued until it is set.
    """

    APP_NAME: str = "PermAuto"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./permauto.db"

    # Session tokens
    SECRET_KEY: Optional[str] = None
    ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_DAYS: int = 1
    PERSISTENT_TOKEN_EXPIRE_DAYS: int = 30
    TOKEN_COOKIE_NAME: str = "token"

    CORS_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
