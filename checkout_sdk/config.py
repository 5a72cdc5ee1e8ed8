"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="CHECKOUT_", extra="ignore"
    )

    # Service
    service_name: str = "checkout-sdk"
    log_level: str = "INFO"

    # Payment backend
    gateway_api_base: str = "http://localhost:8001"
    http_timeout_seconds: float = 5.0
    payment_max_retries: int = 3
    payment_backoff_base: float = 0.5  # Exponential backoff base in seconds

    # Currency
    default_currency: str = "INR"
    currency_symbol: str = "₹"
    minor_unit_digits: int = 2

    # EMI eligibility
    emi_min_amount: int = 1_000
    emi_max_amount: int = 500_000
    emi_min_credit_score: int = 650
    emi_max_income_ratio: float = 0.5  # EMI must not exceed half of monthly income
    emi_reference_tenure: int = 12
    emi_reference_rate: float = 12.0
    emi_due_day: int = 5  # Installments fall due on the 5th of each month

    # Authorization
    mpin_length: int = 4
    otp_min_length: int = 4
    otp_max_length: int = 6
    mpin_max_attempts: int = 3
    otp_max_attempts: int = 3

    # FX debit card
    fx_insurance_price: int = 299

    # HTTP sessions
    max_sessions: int = 1_000


settings = Settings()
