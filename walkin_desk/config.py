"""
Configuration settings for the Walk-In Order Desk.
Uses Pydantic for type-safe configuration management.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Walk-In Order Desk"
    app_version: str = "1.0.0"
    debug: bool = False

    # Workshop backend
    backend_url: str = "http://localhost:5177"
    request_timeout: float = 30.0  # seconds

    # Walk-in sessions
    session_ttl: float = 1800.0  # seconds idle before a session is dropped

    # Billing
    sales_tax_rate: float = 0.18

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # API
    api_v1_prefix: str = "/api/v1"

    class Config:
        env_file = ".env"
        env_prefix = "WALKIN_"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
