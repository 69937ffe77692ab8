# portfolio_analytics/schemas/__init__.py
"""
Pydantic schemas for serialized engine results.

This package contains:
- analytics: Chart, risk, sector, summary, index, search and profile shapes

Usage:
    from portfolio_analytics.schemas import ChartResponse, risk_response

    payload = ChartResponse.from_history(history).to_payload()
"""

from portfolio_analytics.schemas.analytics import (
    AssetProfileResponse,
    BenchmarkResponse,
    ChartResponse,
    HoldingResponse,
    IndexSeriesResponse,
    InsufficientDataResponse,
    RiskResponse,
    SectorAllocationResponse,
    SeriesPointResponse,
    SummaryResponse,
    SymbolSearchItem,
    risk_response,
)

__all__ = [
    # Chart
    "ChartResponse",
    "SeriesPointResponse",
    # Risk
    "RiskResponse",
    "BenchmarkResponse",
    "InsufficientDataResponse",
    "risk_response",
    # Sectors & summary
    "SectorAllocationResponse",
    "SummaryResponse",
    "HoldingResponse",
    # Indices
    "IndexSeriesResponse",
    # Search & profile
    "SymbolSearchItem",
    "AssetProfileResponse",
]
