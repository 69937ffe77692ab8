# tests/services/test_analytics_service.py
"""
Integration tests for PortfolioAnalyticsService.

The service runs against in-memory stores and the mock provider, so the
whole pipeline (window -> replay -> fetch -> reconstruct -> resample ->
normalize / risk / sectors) is exercised without network access.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from conftest import daily_prices, make_event
from portfolio_analytics.services import PortfolioAnalyticsService
from portfolio_analytics.services.analytics.types import RiskStatus
from portfolio_analytics.services.exceptions import FXRateUnavailableError, UnknownBenchmarkError
from portfolio_analytics.services.market_data.base import AssetInfo, SymbolSearchResult

D0 = date(2024, 1, 1)
D3 = D0 + timedelta(days=3)
USD_PORTFOLIO = 1
KRW_PORTFOLIO = 2
EMPTY_PORTFOLIO = 3


@pytest.fixture
def service(transaction_store, portfolio_store, fetcher):
    portfolio_store.add(USD_PORTFOLIO, "USD")
    portfolio_store.add(KRW_PORTFOLIO, "KRW")
    portfolio_store.add(EMPTY_PORTFOLIO, "USD")
    return PortfolioAnalyticsService(
        transaction_store=transaction_store,
        portfolio_store=portfolio_store,
        fetcher=fetcher,
        risk_free_rate=0.0414,
        default_window_days=30,
        price_lookback_days=7,
    )


@pytest.fixture
def aapl_portfolio(transaction_store, mock_provider):
    """10 AAPL bought at 100 on D0; closes 100, 110, 90, 120."""
    transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "BUY", 10, 100, D0))
    mock_provider.add_prices("AAPL", daily_prices(D0, [100, 110, 90, 120]))


# =============================================================================
# CHART
# =============================================================================

class TestChart:
    """Tests for get_chart."""

    def test_normalized_chart(self, service, aapl_portfolio):
        history = service.get_chart(USD_PORTFOLIO, as_of=D3)

        assert history.start_date == D0
        assert history.end_date == D3
        assert [v for _, v in history.series()] == [
            Decimal("0.00"), Decimal("10.00"), Decimal("-10.00"), Decimal("20.00"),
        ]
        assert history.warnings == []

    def test_absolute_chart(self, service, aapl_portfolio):
        history = service.get_chart(USD_PORTFOLIO, normalize=False, as_of=D3)

        assert not history.is_normalized
        assert [v for _, v in history.series()] == [
            Decimal("1000.00"), Decimal("1100.00"), Decimal("900.00"), Decimal("1200.00"),
        ]

    def test_fetches_lookback_before_window(self, service, aapl_portfolio, mock_provider):
        service.get_chart(USD_PORTFOLIO, as_of=D3)

        assert mock_provider.history_calls == [("AAPL", D0 - timedelta(days=7), D3)]

    def test_sell_shows_zero(self, service, aapl_portfolio, transaction_store):
        transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "SELL", 10, 90, D0 + timedelta(days=2)))

        history = service.get_chart(USD_PORTFOLIO, normalize=False, as_of=D3)

        assert [p.value for p in history.points][2:] == [Decimal("0.00"), Decimal("0.00")]

    def test_weekly_interval(self, service, transaction_store, mock_provider):
        transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "BUY", 1, 100, D0))
        mock_provider.add_prices("AAPL", daily_prices(D0, range(100, 114)))

        history = service.get_chart(
            USD_PORTFOLIO, interval="1wk", normalize=False, as_of=D0 + timedelta(days=13)
        )

        assert history.interval == "1wk"
        assert [p.date for p in history.points] == [date(2024, 1, 7), date(2024, 1, 14)]

    def test_unknown_interval_is_daily(self, service, aapl_portfolio):
        history = service.get_chart(USD_PORTFOLIO, interval="hourly", as_of=D3)

        assert history.interval == "1d"
        assert len(history.points) == 4

    def test_invalid_window_falls_back(self, service, aapl_portfolio):
        history = service.get_chart(
            USD_PORTFOLIO, start_date=D3, end_date=D0, as_of=D3
        )

        assert history.window_fallback_applied
        assert history.end_date == D0
        assert history.start_date == D0 - timedelta(days=30)
        assert any("invalid" in w for w in history.warnings)

    def test_no_transactions(self, service, mock_provider):
        history = service.get_chart(EMPTY_PORTFOLIO, as_of=D3)

        assert history.is_empty
        assert history.series() == []
        assert mock_provider.history_calls == []

    def test_failed_symbol_is_warning(self, service, transaction_store, mock_provider):
        transaction_store.add(USD_PORTFOLIO, make_event("GONE", "BUY", 1, 10, D0))
        mock_provider.fail("GONE")

        history = service.get_chart(USD_PORTFOLIO, normalize=False, as_of=D3)

        assert len(history.points) == 4
        assert all(p.value == Decimal("0.00") for p in history.points)
        assert any("GONE" in w for w in history.warnings)

    def test_krw_portfolio_converts_usd(self, service, transaction_store, mock_provider):
        transaction_store.add(KRW_PORTFOLIO, make_event("AAPL", "BUY", 1, 100, D0, currency="USD"))
        mock_provider.add_prices("AAPL", daily_prices(D0, [100]))
        mock_provider.add_quote("USDKRW=X", "1350")

        history = service.get_chart(KRW_PORTFOLIO, normalize=False, as_of=D0)

        assert history.points[0].value == Decimal("135000.00")
        assert history.base_currency == "KRW"
        assert not history.fx_fallback_used

    def test_fx_fallback_flag(self, service, transaction_store, mock_provider):
        transaction_store.add(KRW_PORTFOLIO, make_event("AAPL", "BUY", 1, 100, D0, currency="USD"))
        mock_provider.add_prices("AAPL", daily_prices(D0, [100]))
        mock_provider.fail("USDKRW=X")

        history = service.get_chart(KRW_PORTFOLIO, normalize=False, as_of=D0)

        assert history.fx_fallback_used
        assert history.points[0].value == Decimal("130000.00")

    def test_fx_unavailable_raises(self, service, transaction_store, portfolio_store, mock_provider):
        portfolio_store.add(4, "EUR")
        transaction_store.add(4, make_event("AAPL", "BUY", 1, 100, D0, currency="USD"))
        mock_provider.add_prices("AAPL", daily_prices(D0, [100]))
        mock_provider.fail("EURUSD=X")

        with pytest.raises(FXRateUnavailableError):
            service.get_chart(4, as_of=D0)


# =============================================================================
# RISK
# =============================================================================

class TestRiskMetrics:
    """Tests for get_risk_metrics."""

    @pytest.fixture
    def risk_portfolio(self, transaction_store, mock_provider):
        as_of = date(2024, 1, 31)
        transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "BUY", 10, 100, D0))
        transaction_store.add(USD_PORTFOLIO, make_event("MSFT", "BUY", 5, 50, D0))
        mock_provider.add_prices("AAPL", daily_prices(D0, [100, 102, 101, 105, 103, 108, 107]))
        mock_provider.add_prices("MSFT", daily_prices(D0, [50, 49, 51, 52, 50, 53, 54]))
        mock_provider.add_prices("^GSPC", daily_prices(D0, [4000, 4040, 4020, 4100, 4080, 4150, 4160]))
        return as_of

    def test_with_benchmark(self, service, risk_portfolio):
        metrics = service.get_risk_metrics(USD_PORTFOLIO, benchmark="sp500", as_of=risk_portfolio)

        assert metrics.status == RiskStatus.OK
        assert metrics.has_benchmark
        assert metrics.benchmark.symbol == "^GSPC"
        assert metrics.common_dates == 7
        assert metrics.max_drawdown <= 0.0
        assert set(metrics.correlation_matrix) == {"AAPL", "MSFT"}

    def test_without_benchmark(self, service, risk_portfolio, mock_provider):
        metrics = service.get_risk_metrics(USD_PORTFOLIO, as_of=risk_portfolio)

        assert metrics.beta is None
        assert metrics.benchmark is None
        assert "^GSPC" not in {call[0] for call in mock_provider.history_calls}

    def test_unknown_benchmark_ignored(self, service, risk_portfolio):
        metrics = service.get_risk_metrics(USD_PORTFOLIO, benchmark="ftse", as_of=risk_portfolio)

        assert metrics.status == RiskStatus.OK
        assert metrics.beta is None
        assert any("ftse" in w for w in metrics.warnings)

    def test_uses_trailing_window(self, service, risk_portfolio, mock_provider):
        service.get_risk_metrics(USD_PORTFOLIO, as_of=risk_portfolio)

        starts = {call[1] for call in mock_provider.history_calls}
        assert starts == {risk_portfolio - timedelta(days=30)}

    def test_no_holdings(self, service, mock_provider):
        metrics = service.get_risk_metrics(EMPTY_PORTFOLIO, as_of=D3)

        assert metrics.status == RiskStatus.NO_HOLDINGS
        assert mock_provider.history_calls == []

    def test_insufficient_data(self, service, transaction_store, mock_provider):
        transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "BUY", 1, 100, D0))
        mock_provider.add_prices("AAPL", daily_prices(D0, [100]))

        metrics = service.get_risk_metrics(USD_PORTFOLIO, as_of=D3)

        assert metrics.status == RiskStatus.INSUFFICIENT_DATA


# =============================================================================
# SUMMARY & SECTORS
# =============================================================================

class TestSummary:
    """Tests for get_summary and get_sector_allocation."""

    @pytest.fixture
    def summary_portfolio(self, transaction_store, mock_provider):
        transaction_store.add(
            USD_PORTFOLIO,
            make_event("AAPL", "BUY", 10, 100, D0),
            make_event("SPY", "BUY", 2, 500, D0),
            make_event("XOM", "BUY", 5, 100, D0),
            make_event("XOM", "SELL", 5, 110, D0 + timedelta(days=1)),
        )
        mock_provider.add_quote("AAPL", "150")
        mock_provider.add_quote("SPY", "500")
        mock_provider.add_info(AssetInfo("AAPL", "Apple", "EQUITY", "USD", sector="Technology"))
        mock_provider.add_info(AssetInfo(
            "SPY", "SPDR", "ETF", "USD",
            sector_weights={"Technology": 0.5, "Healthcare": 0.5},
        ))

    def test_holdings_and_totals(self, service, summary_portfolio):
        summary = service.get_summary(USD_PORTFOLIO, as_of=D3)

        assert [h.symbol for h in summary.holdings] == ["AAPL", "SPY"]
        assert summary.total_value == Decimal("2500")
        assert summary.total_cost == Decimal("2000")
        assert summary.total_pnl == Decimal("500")
        assert summary.return_pct == Decimal("25")

    def test_sector_allocation(self, service, summary_portfolio):
        allocation = service.get_sector_allocation(USD_PORTFOLIO, as_of=D3)

        # AAPL 1500 tech, SPY 1000 split evenly
        assert allocation == {"Technology": Decimal("80.00"), "Healthcare": Decimal("20.00")}

    def test_spot_failure_uses_average_cost(self, service, transaction_store, mock_provider):
        transaction_store.add(USD_PORTFOLIO, make_event("AAPL", "BUY", 2, 100, D0))
        mock_provider.fail("AAPL")

        summary = service.get_summary(USD_PORTFOLIO, as_of=D3)

        holding = summary.holdings[0]
        assert holding.price_is_fallback
        assert holding.value == Decimal("200")
        assert summary.sector_allocation == {"Unknown": Decimal("100.00")}

    def test_invalid_provider_weights_fall_back(self, service, transaction_store, mock_provider):
        transaction_store.add(USD_PORTFOLIO, make_event("BAD", "BUY", 1, 100, D0))
        mock_provider.add_quote("BAD", "100")
        mock_provider.add_info(AssetInfo(
            "BAD", "Bad Fund", "ETF", "USD",
            sector="Energy",
            sector_weights={"Energy": 0.9, "Utilities": 0.9},
        ))

        summary = service.get_summary(USD_PORTFOLIO, as_of=D3)

        assert summary.sector_allocation == {"Energy": Decimal("100.00")}
        assert any("BAD" in w for w in summary.warnings)

    def test_krw_summary_reports_rates_used(self, service, transaction_store, mock_provider):
        transaction_store.add(KRW_PORTFOLIO, make_event("AAPL", "BUY", 2, 100, D0, currency="USD"))
        mock_provider.add_quote("AAPL", "150")
        mock_provider.add_quote("USDKRW=X", "1350")

        summary = service.get_summary(KRW_PORTFOLIO, as_of=D3)

        assert summary.fx_rates == {"USDKRW=X": Decimal("1350")}
        assert summary.holdings[0].value == Decimal("405000")
        assert summary.total_cost == Decimal("270000")

    def test_empty_portfolio(self, service):
        summary = service.get_summary(EMPTY_PORTFOLIO, as_of=D3)

        assert summary.holdings == []
        assert summary.total_value == Decimal("0")
        assert summary.sector_allocation == {}


# =============================================================================
# INDICES, SEARCH, PROFILE
# =============================================================================

class TestIndexSeries:
    """Tests for get_index_series."""

    def test_range_preset(self, service, mock_provider):
        as_of = date(2024, 1, 31)
        mock_provider.add_prices("^KS11", daily_prices(date(2024, 1, 20), range(2500, 2512)))

        series = service.get_index_series("KOSPI", range_key="7d", as_of=as_of)

        assert series.key == "kospi"
        assert series.symbol == "^KS11"
        assert series.start_date == date(2024, 1, 24)
        assert [p.date for p in series.points][0] == date(2024, 1, 24)
        assert series.points[-1].value == Decimal("2511")

    def test_normalized(self, service, mock_provider):
        mock_provider.add_prices("^GSPC", daily_prices(D0, [4000, 4400]))

        series = service.get_index_series(
            "sp500", start_date=D0, end_date=D0 + timedelta(days=1), normalize=True
        )

        assert [p.value for p in series.points] == [Decimal("0.00"), Decimal("10.00")]

    def test_starts_at_portfolio_inception(self, service, aapl_portfolio, mock_provider):
        mock_provider.add_prices("^IXIC", daily_prices(D0, [15000, 15100]))

        series = service.get_index_series("nasdaq", portfolio_id=USD_PORTFOLIO, as_of=D3)

        assert series.start_date == D0

    def test_unknown_index_raises(self, service):
        with pytest.raises(UnknownBenchmarkError):
            service.get_index_series("ftse")


class TestPassThrough:
    """Tests for search and asset profile."""

    def test_search(self, service, mock_provider):
        mock_provider.add_search_results("apple", [SymbolSearchResult("AAPL", "Apple", "NMS", "EQUITY")])

        assert [r.symbol for r in service.search_symbols(" apple ")] == ["AAPL"]

    def test_blank_search(self, service):
        assert service.search_symbols("   ") == []

    def test_asset_profile(self, service, mock_provider):
        mock_provider.add_info(AssetInfo("AAPL", "Apple", "EQUITY", "USD", sector="Technology"))

        assert service.get_asset_profile(" aapl ").sector == "Technology"
