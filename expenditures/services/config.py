"""Application configuration from environment variables."""

from functools import lru_cache

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from expenditures.constants import COLONY_TOKEN


class Settings(BaseSettings):
    """Ledger settings loaded from environment variables and .env."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite:///./expenditures.db",
        description="SQLAlchemy connection string",
    )
    database_echo: bool = Field(default=False, description="Log SQL queries")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/ledger.log", description="Log file path")

    # Colony
    colony_address: str = Field(
        default="colony", description="Account holding every pot's tokens"
    )
    native_token: str = Field(
        default=COLONY_TOKEN, description="Colony token; only its payouts earn reputation"
    )
    founder_account: str = Field(
        default="founder", description="Account granted every root role at bootstrap"
    )

    # Network fee
    fee_inverse: int = Field(
        default=100, description="Claims pay 1/fee_inverse (+1 unit) to the fee collector"
    )
    fee_collector: str = Field(default="network", description="Account receiving claim fees")

    # One-transaction payments
    payment_agent: str = Field(
        default="one-tx-payment", description="Account the payment orchestrator acts as"
    )

    @field_validator("fee_inverse")
    @classmethod
    def fee_inverse_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("fee_inverse must be at least 1")
        return value


@lru_cache
def get_settings() -> Settings:
    """Return process-wide settings (instantiated on first use)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
