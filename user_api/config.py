"""Configuration management and validation using Pydantic."""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application configuration settings loaded from environment variables or .env files."""

    @staticmethod
    def get_env_file() -> str | None:
        """Determine which .env file to load based on environment variables.

        Returns:
            None if SKIP_ENV_FILE is set or the file does not exist
            .env.{APP_ENV} file path otherwise (defaults to .env.dev)
        """
        if os.getenv("SKIP_ENV_FILE"):
            return None
        env_file = f".env.{os.getenv('APP_ENV', 'dev')}"
        if not os.path.exists(env_file):
            return None
        return env_file

    model_config = SettingsConfigDict(
        env_file=get_env_file.__func__(),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # ==================== Application Settings ====================
    APP_NAME: str = "User API"
    APP_ENV: str = "dev"
    DB_URL: str = "sqlite+aiosqlite:///./users.db"
    DB_CREATE_TABLES: bool = True  # Create schema on startup (Alembic manages it otherwise)

    # ==================== Database Connection Pooling ====================
    # Applied to PostgreSQL only
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_CONNECT_TIMEOUT: int = 10  # Seconds

    # ==================== HTTP Server ====================
    HOST: str = "0.0.0.0"
    PORT: int = 3000  # First port tried by the launcher
    PORT_SCAN_RANGE: int = 100  # Ports tried after PORT before giving up

    # ==================== CORS Settings ====================
    CORS_ORIGINS: str = "*"  # Comma-separated allowed origins

    # ==================== Field Validation ====================
    USER_NAME_MAX_LENGTH: int = 100
    USER_EMAIL_MAX_LENGTH: int = 255

    # ==================== Logging ====================
    LOG_LEVEL: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FILE: str | None = None  # Path enables file logging
    LOG_FORMAT: str = "console"  # "console" for dev, "json" for production

    @field_validator('DB_URL')
    @classmethod
    def validate_db_url(cls, v: str) -> str:
        """Validate that DB_URL points at a supported async driver."""
        if not v:
            raise ValueError("DB_URL must not be empty")
        if not v.startswith(("sqlite+aiosqlite://", "postgresql+asyncpg://")):
            raise ValueError(
                "DB_URL must be a sqlite+aiosqlite:// or postgresql+asyncpg:// connection string"
            )
        return v

    @field_validator('LOG_FORMAT')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError("LOG_FORMAT must be 'console' or 'json'")
        return v

    @field_validator('PORT_SCAN_RANGE')
    @classmethod
    def validate_port_scan_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PORT_SCAN_RANGE must be at least 1")
        return v

    def get_cors_origins(self) -> list[str]:
        """Parse CORS_ORIGINS into a list of allowed origins."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.DB_URL.startswith("sqlite")

settings = Settings()
