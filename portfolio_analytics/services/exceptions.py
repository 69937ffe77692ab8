# portfolio_analytics/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO transport
knowledge. A surrounding request layer is responsible for mapping them to
responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidIntervalError
    │   ├── InvalidRangeError
    │   └── InvalidSectorWeightsError
    ├── MarketDataError
    │   ├── ProviderUnavailableError
    │   ├── TickerNotFoundError
    │   └── RateLimitError
    ├── FXRateError
    │   └── FXRateUnavailableError
    └── AnalyticsError
        └── UnknownBenchmarkError

Per-symbol market data errors never escape the PriceSeriesFetcher; they
degrade that symbol's series to empty and are recorded as warnings.
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when programmatic input validation fails.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidIntervalError(ValidationError):
    """
    Raised when an unknown resampling interval is requested.

    Valid intervals are: 1d, 5d, 1wk, 1mo, 3mo
    """

    def __init__(self, interval: str) -> None:
        self.interval = interval
        super().__init__(
            f"Invalid interval: '{interval}'. Valid options: 1d, 5d, 1wk, 1mo, 3mo",
            field="interval"
        )


class InvalidRangeError(ValidationError):
    """Raised when an unknown chart range preset is requested."""

    def __init__(self, range_key: str) -> None:
        self.range_key = range_key
        super().__init__(
            f"Invalid range: '{range_key}'. Valid options: 7d, 1mo, 3mo, 6mo, 1y, 3y, max",
            field="range"
        )


class InvalidSectorWeightsError(ValidationError):
    """
    Raised when sector weights are negative or sum above 1.

    Each weight must lie in [0, 1] and all weights must sum to at most 1.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid sector weights: {reason}", field="sector_weights")


# =============================================================================
# MARKET DATA PROVIDER ERRORS
# =============================================================================


class MarketDataError(ServiceError):
    """
    Base exception for market data provider failures.

    Attributes:
        provider: Name of the provider that failed
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)


class ProviderUnavailableError(MarketDataError):
    """
    Raised when a market data provider is temporarily unavailable.

    Examples:
    - Network timeout
    - Server errors (500, 502, 503)

    This is a retryable error.
    """

    def __init__(self, provider: str, reason: str) -> None:
        message = f"Provider '{provider}' is unavailable: {reason}"
        super().__init__(message, provider=provider)
        self.reason = reason


class TickerNotFoundError(MarketDataError):
    """
    Raised when a symbol is not recognized by the provider.

    This is NOT a retryable error.
    """

    def __init__(self, symbol: str, provider: str) -> None:
        message = f"Symbol '{symbol}' not found by {provider}"
        super().__init__(message, provider=provider)
        self.symbol = symbol


class RateLimitError(MarketDataError):
    """
    Raised when the provider's rate limit has been exceeded.

    This is a retryable error (with backoff).

    Attributes:
        retry_after: Seconds to wait before retrying (if provided by API)
    """

    def __init__(self, provider: str, retry_after: int | None = None) -> None:
        message = f"Rate limit exceeded for provider '{provider}'"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(message, provider=provider)
        self.retry_after = retry_after


# =============================================================================
# FX RATE ERRORS
# =============================================================================


class FXRateError(ServiceError):
    """
    Base exception for FX rate errors.

    Attributes:
        fx_symbol: Provider symbol of the pair (e.g., "USDKRW=X")
    """

    def __init__(self, message: str, fx_symbol: str | None = None) -> None:
        self.fx_symbol = fx_symbol
        super().__init__(message)


class FXRateUnavailableError(FXRateError):
    """
    Raised when neither a live quote nor a configured fallback rate exists.

    A failed live quote alone is NOT an error: the configured fallback rate
    is used and the result is flagged.
    """

    def __init__(self, fx_symbol: str) -> None:
        super().__init__(
            f"No FX rate available for {fx_symbol} and no fallback configured",
            fx_symbol=fx_symbol,
        )


# =============================================================================
# ANALYTICS ERRORS
# =============================================================================


class AnalyticsError(ServiceError):
    """Base exception for analytics calculation errors."""
    pass


class UnknownBenchmarkError(AnalyticsError):
    """
    Raised when a benchmark key is not in the benchmark catalog.

    Attributes:
        key: The requested benchmark key
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Unknown benchmark '{key}'")


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "InvalidIntervalError",
    "InvalidRangeError",
    "InvalidSectorWeightsError",
    # Market Data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
    # FX Rate
    "FXRateError",
    "FXRateUnavailableError",
    # Analytics
    "AnalyticsError",
    "UnknownBenchmarkError",
]
