"""
Application configuration.
Uses pydantic-settings to read environment variables and .env.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Database (local persisted state)
    database_url: str = "sqlite:///./cinco_billing.db"

    # API
    api_title: str = "Cinco Apartments Billing"
    api_description: str = "Tenant management, utility billing and receipt export"
    api_version: str = "1.0.0"

    # CORS
    cors_allow_origins: List[str] = ["*"]  # Restrict to concrete domains in production
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Receipts
    company_name: str = "Cinco Apartments"
    currency_symbol: str = "₱"

    # Shared storage sync
    shared_data_url: str = "http://localhost:8000/api/shared-data"
    sync_interval_seconds: float = 3.0
    sync_request_timeout: float = 10.0
    sync_autostart: bool = True

    # Default rates for a fresh billing draft
    default_electricity_price_per_kwh: float = 12.5
    default_water_first10: float = 150.0
    default_water_next10: float = 25.0
    default_water_next10_2: float = 30.0
    default_water_above30: float = 35.0
    default_parking_fee: float = 500.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
