"""
PaperTrading Ledger - Configuration Settings
"""
from decimal import Decimal
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # =========================
    # Application Settings
    # =========================
    APP_NAME: str = "PaperTrading Ledger"
    APP_ENV: str = "development"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"

    # =========================
    # Server Configuration
    # =========================
    BACKEND_HOST: str = "0.0.0.0"
    BACKEND_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v

    # =========================
    # Ledger Storage
    # =========================
    LEDGER_BACKEND: str = "file"  # file | redis | memory
    LEDGER_FILE: str = "data/portfolio.json"
    LEDGER_REDIS_KEY: str = "ledger:portfolio"
    STARTING_BALANCE: Decimal = Decimal("1000000")

    @field_validator("LEDGER_BACKEND")
    @classmethod
    def validate_ledger_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("file", "redis", "memory"):
            raise ValueError(f"Unsupported ledger backend: {v}")
        return v

    # =========================
    # Redis
    # =========================
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""
    REDIS_DB: int = 0
    # Direct REDIS_URL from environment (for Docker - overrides individual settings)
    REDIS_URL: str = ""

    @property
    def redis_url(self) -> str:
        """Get the Redis URL."""
        if self.REDIS_URL:
            return self.REDIS_URL
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    # =========================
    # Market Data
    # =========================
    FINNHUB_API_KEY: str = ""
    QUOTE_TIMEOUT_SECONDS: float = 10.0

    # =========================
    # Logging
    # =========================
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True


# Create global settings instance
settings = Settings()
