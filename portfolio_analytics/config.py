# portfolio_analytics/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables with validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- LOG_LEVEL / LOG_FORMAT: Logging setup (see utils/logging.py)
- RISK_FREE_RATE: Annual risk-free rate used by the Sharpe ratio
- DEFAULT_WINDOW_DAYS: Trailing window used when a requested window is invalid
- PRICE_LOOKBACK_DAYS: Extra history fetched to seed carry-forward prices
- FETCH_MAX_WORKERS: Thread pool size for the price fan-out
- PROVIDER_TIMEOUT: Market data request timeout in seconds
- DEFAULT_FX_RATES: Fallback FX snapshot rates (JSON object)

Configuration is validated when the module is imported. Invalid configuration
raises a ValueError with a descriptive message.

Usage:
    from portfolio_analytics.config import settings

    rate = settings.risk_free_rate
"""
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    Every service accepts explicit overrides in its constructor, so these
    values are only defaults.
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # ANALYTICS
    # =========================================================================
    risk_free_rate: float = Field(
        default=0.0414,
        ge=0.0,
        lt=1.0,
        description="Annual risk-free rate (decimal) for Sharpe ratio"
    )
    default_window_days: int = Field(
        default=365,
        ge=1,
        description="Trailing window used for risk history and invalid-window fallback"
    )
    price_lookback_days: int = Field(
        default=7,
        ge=0,
        le=31,
        description="Days fetched before window start to seed carry-forward prices"
    )

    # =========================================================================
    # MARKET DATA
    # =========================================================================
    fetch_max_workers: int = Field(
        default=8,
        ge=1,
        le=32,
        description="Maximum concurrent provider calls per request"
    )
    provider_timeout: int = Field(
        default=10,
        ge=1,
        le=120,
        description="Market data request timeout in seconds"
    )
    default_fx_rates: dict[str, float] = Field(
        default={"USDKRW=X": 1300.0, "EURUSD=X": 1.08},
        description="Fallback FX rates keyed by provider FX symbol"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_fx_rates")
    @classmethod
    def validate_fx_rates(cls, value: dict[str, float]) -> dict[str, float]:
        """Fallback rates must be positive; symbols are normalized to uppercase."""
        normalized = {}
        for symbol, rate in value.items():
            if rate <= 0:
                raise ValueError(
                    f"Fallback FX rate for {symbol} must be positive, got {rate}"
                )
            normalized[symbol.strip().upper()] = rate
        return normalized

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
