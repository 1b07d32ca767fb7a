"""Application configuration"""

from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Campus Helpdesk API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Bearer tokens issued by the identity provider
    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 1440  # 24 hours

    # Persistence
    # WHY: The store backend is fixed at process start; business code only
    # sees the injected PersistenceStore.
    STORE_BACKEND: Literal["sql", "memory"] = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./helpdesk.db"
    AUTO_CREATE_TABLES: bool = True
    SEED_DEMO_DATA: bool = False

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
        "http://localhost:5173",
        "http://127.0.0.1:5000",
        "http://127.0.0.1:5173",
    ]

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def is_sqlite(self) -> bool:
        """SQLite URLs need different engine pool options than PostgreSQL."""
        return self.async_database_url.startswith("sqlite")


settings = Settings()
