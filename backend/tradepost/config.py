"""Application configuration management using Pydantic Settings."""

from typing import List
from decimal import Decimal
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./tradepost.db"

    # API
    API_V1_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str] = ['http://localhost:5173']

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Trade Proposal Settings
    MAX_CASH_ADJUSTMENT: Decimal = Decimal("500")  # Cash a proposer may add on top of items
    BALANCE_TOLERANCE: Decimal = Decimal("1.0")  # Differences below this count as an even trade
    TRADE_PROPOSAL_EXPIRATION_MINUTES: int = 60
    EXPIRY_SWEEP_INTERVAL_SECONDS: int = 300  # 0 disables the background sweep
    CRON_SECRET: str = ""

    # Negotiation Agent Settings
    COUNTER_OFFER_WINDOW_SECONDS: int = 600  # Counter-offers are valid for 10 minutes
    MAX_COUNTER_OFFERS: int = 3
    DEFAULT_MINIMUM_PRICE_RATIO: Decimal = Decimal("0.7")  # Used when a seller sets no minimum

    # Negotiation Chat Client Settings
    NEGOTIATION_FUNCTION_URL: str = "http://localhost:8000/api/agent-negotiate"
    NEGOTIATION_FUNCTION_KEY: str = ""
    NEGOTIATION_TIMEOUT_SECONDS: float = 30.0
    THINK_DELAY_MIN_SECONDS: float = 2.0
    THINK_DELAY_MAX_SECONDS: float = 3.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v) -> List[str]:
        """Parse CORS_ORIGINS from JSON string to list."""
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("MAX_CASH_ADJUSTMENT", "BALANCE_TOLERANCE", "DEFAULT_MINIMUM_PRICE_RATIO", mode="before")
    @classmethod
    def parse_decimal(cls, v) -> Decimal:
        """Parse string to Decimal for precise arithmetic."""
        if isinstance(v, str):
            return Decimal(v)
        return v


# Global settings instance
settings = Settings()
