"""
Sales Forecast API Configuration
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Sales Forecast API"
    version: str = "0.3.0"
    debug: bool = False
    environment: str = "production"

    # API Configuration
    api_v1_prefix: str = "/api/v1"

    # Database
    database_url: str = "sqlite+aiosqlite:///./forecast.db"

    # Monitoring
    prometheus_enabled: bool = True
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Forecasting
    currency: str = "EUR"
    forecast_default_period: str = "quarter"
    forecast_default_scenario: str = "realistic"
    forecast_random_seed: Optional[int] = None
    historical_months: int = 6
    conversion_window_months: int = 3
    historical_fallback_amount: float = 50000.0

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
