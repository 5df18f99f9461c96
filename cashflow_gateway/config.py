"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CASHFLOW_",
        extra="ignore",
    )

    # Service
    service_name: str = "cashflow-gateway"
    log_level: str = "INFO"

    # Termination guards for recurrence expansion and payoff simulation
    max_occurrences: int = 500
    max_payoff_months: int = 600  # 50 years
    stagnation_periods: int = 12
    default_loan_term_months: int = 360

    # Projection windows
    credit_projection_months: int = 12
    balance_epsilon: float = 0.01

    # Balance forecast
    default_warning_threshold: float = 500.0
    bill_coverage_days: int = 14
    runway_max_days: int = 365
    crunch_max_days: int = 90


settings = Settings()
