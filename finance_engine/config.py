"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "finance-engine"
    log_level: str = "INFO"

    # Integrity checker
    integrity_tolerance: float = 0.01

    # Runway reported when monthly pressure is zero but money is available
    runway_saturation_months: float = 99.0

    # Projection horizons
    forecast_cycles: int = 12
    loan_projection_months: int = 36


settings = Settings()
