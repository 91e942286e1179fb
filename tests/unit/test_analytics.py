"""Unit tests for PortfolioAnalyticsService.

Compounding reference: a constant APY r held for n daily steps ends at
    100 · (1 + r / 365)ⁿ
e.g. r = 0.0365 → 1.0001 per step → 100.0100 after one, 100.0200010 after two.
"""

from __future__ import annotations

import pandas as pd
import pytest

from src.domain.models.markets import AssetInfo, MarketRecord, YieldPoint
from src.domain.models.portfolio import PortfolioItem
from src.domain.services.analytics import (
    PortfolioAnalyticsService,
    compound_index,
    sharpe_ratio,
)


T0 = 1_700_000_000
DAY = 86_400


# ------------------------------------------------------------------ #
# Helpers                                                              #
# ------------------------------------------------------------------ #


def _market(
    key: str,
    apys: list[float],
    current: float | None = None,
    start: int = T0,
) -> MarketRecord:
    return MarketRecord(
        unique_key=key,
        loan_asset=AssetInfo(symbol="USDC"),
        current_supply_usd=1_000_000.0,
        current_net_supply_apy=current,
        yield_history=[
            YieldPoint(timestamp=start + i * DAY, apy=apy) for i, apy in enumerate(apys)
        ],
    )


def _item(market: MarketRecord | None, weight: float, key: str | None = None) -> PortfolioItem:
    return PortfolioItem(
        unique_key=key or (market.unique_key if market else "missing"),
        market=market,
        weight=weight,
    )


@pytest.fixture
def svc() -> PortfolioAnalyticsService:
    return PortfolioAnalyticsService()


# ------------------------------------------------------------------ #
# Module helpers                                                       #
# ------------------------------------------------------------------ #


class TestHelpers:
    def test_sharpe_ratio(self) -> None:
        assert sharpe_ratio(0.08, 0.02) == pytest.approx(4.0)

    def test_sharpe_ratio_zero_risk_returns_return(self) -> None:
        assert sharpe_ratio(0.05, 0.0) == 0.05

    def test_compound_index_constant_apy(self) -> None:
        values = compound_index([0.0365] * 3)
        assert values == pytest.approx([100.01, 100.0200010, 100.0300030001])

    def test_compound_index_empty(self) -> None:
        assert compound_index([]) == []


# ------------------------------------------------------------------ #
# Blended yields                                                       #
# ------------------------------------------------------------------ #


class TestWeightedCurrentApy:
    def test_weighted_blend(self, svc: PortfolioAnalyticsService) -> None:
        items = [
            _item(_market("a", [0.05], current=0.06), 0.75),
            _item(_market("b", [0.05], current=0.10), 0.25),
        ]
        assert svc.weighted_current_apy(items) == pytest.approx(0.07)

    def test_renormalises_over_items_with_data(self, svc: PortfolioAnalyticsService) -> None:
        items = [
            _item(_market("a", [0.05], current=0.08), 0.3),
            _item(_market("b", [0.05], current=None), 0.3),
            _item(None, 0.3, key="gone"),
        ]
        assert svc.weighted_current_apy(items) == pytest.approx(0.08)

    def test_none_when_no_item_reports(self, svc: PortfolioAnalyticsService) -> None:
        items = [_item(_market("a", [0.05], current=None), 1.0)]
        assert svc.weighted_current_apy(items) is None

    def test_none_for_empty_portfolio(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.weighted_current_apy([]) is None

    def test_zero_weight_items_ignored(self, svc: PortfolioAnalyticsService) -> None:
        items = [_item(_market("a", [0.05], current=0.05), 0.0)]
        assert svc.weighted_current_apy(items) is None


class TestWeightedAverageApy:
    def test_uses_trailing_window(self, svc: PortfolioAnalyticsService) -> None:
        market = _market("a", [1.0] * 3 + [0.05] * 7)
        assert svc.weighted_average_apy([_item(market, 1.0)]) == pytest.approx(0.05)

    def test_window_longer_than_history(self, svc: PortfolioAnalyticsService) -> None:
        market = _market("a", [0.04, 0.06])
        assert svc.weighted_average_apy([_item(market, 1.0)], days=30) == pytest.approx(0.05)

    def test_weighted_blend(self, svc: PortfolioAnalyticsService) -> None:
        items = [
            _item(_market("a", [0.04, 0.06]), 0.5),
            _item(_market("b", [0.08, 0.10]), 0.5),
        ]
        assert svc.weighted_average_apy(items, days=2) == pytest.approx(0.07)

    def test_none_without_history(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.weighted_average_apy([_item(_market("a", []), 1.0)]) is None

    def test_non_positive_window_raises(self, svc: PortfolioAnalyticsService) -> None:
        with pytest.raises(ValueError):
            svc.weighted_average_apy([], days=0)


# ------------------------------------------------------------------ #
# Weighted series and metrics                                          #
# ------------------------------------------------------------------ #


class TestWeightedSeries:
    def test_trims_to_shortest_history(self, svc: PortfolioAnalyticsService) -> None:
        items = [
            _item(_market("long", [0.01, 0.02, 0.04, 0.06]), 0.5),
            _item(_market("short", [0.10, 0.10], start=T0 + 2 * DAY), 0.5),
        ]
        series = svc.weighted_series(items)
        assert [p.apy for p in series] == pytest.approx([0.07, 0.08])

    def test_timestamps_in_milliseconds_from_first_item(
        self, svc: PortfolioAnalyticsService
    ) -> None:
        items = [_item(_market("a", [0.05, 0.06, 0.07]), 1.0)]
        series = svc.weighted_series(items)
        assert [p.timestamp_ms for p in series] == [
            T0 * 1000,
            (T0 + DAY) * 1000,
            (T0 + 2 * DAY) * 1000,
        ]

    def test_skips_items_without_market(self, svc: PortfolioAnalyticsService) -> None:
        items = [_item(_market("a", [0.05, 0.05]), 0.5), _item(None, 0.5, key="x")]
        assert [p.apy for p in svc.weighted_series(items)] == pytest.approx([0.05, 0.05])

    def test_none_without_history(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.weighted_series([_item(None, 1.0, key="x")]) is None

    def test_none_when_weights_are_zero(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.weighted_series([_item(_market("a", [0.05]), 0.0)]) is None


class TestCalculateMetrics:
    def test_metrics_from_blended_series(self, svc: PortfolioAnalyticsService) -> None:
        # blended series = [0.06, 0.08]: mean 0.07, population σ 0.01
        items = [
            _item(_market("a", [0.06, 0.08], current=0.08), 0.5),
            _item(_market("b", [0.06, 0.08], current=0.08), 0.5),
        ]
        metrics = svc.calculate_metrics(items)
        assert metrics.expected_return == pytest.approx(0.07)
        assert metrics.expected_risk == pytest.approx(0.01)
        assert metrics.sharpe == pytest.approx(7.0)
        assert metrics.current_apy == pytest.approx(0.08)
        assert metrics.average_apy == pytest.approx(0.07)
        assert metrics.active_markets == 2

    def test_constant_series_sharpe_equals_return(
        self, svc: PortfolioAnalyticsService
    ) -> None:
        metrics = svc.calculate_metrics([_item(_market("a", [0.05] * 4), 1.0)])
        assert metrics.expected_risk == pytest.approx(0.0, abs=1e-12)
        assert metrics.sharpe == pytest.approx(0.05)

    def test_active_markets_counts_all_items(self, svc: PortfolioAnalyticsService) -> None:
        items = [_item(_market("a", [0.05] * 4), 0.6), _item(None, 0.3, key="x")]
        assert svc.calculate_metrics(items).active_markets == 2

    def test_unavailable_without_history(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.calculate_metrics([]) is None

    def test_window_recorded(self, svc: PortfolioAnalyticsService) -> None:
        metrics = svc.calculate_metrics([_item(_market("a", [0.05] * 4), 1.0)], days=3)
        assert metrics.average_window_days == 3


# ------------------------------------------------------------------ #
# Performance replay                                                   #
# ------------------------------------------------------------------ #


class TestPerformanceSeries:
    def test_constant_yield_compounds_daily(self, svc: PortfolioAnalyticsService) -> None:
        r = 0.0365
        points = svc.performance_series({"p": [_item(_market("a", [r] * 5), 1.0)]})
        for n, point in enumerate(points, start=1):
            assert point.values["p"].cumulative_value == pytest.approx(
                100 * (1 + r / 365) ** n
            )
            assert point.values["p"].apy == pytest.approx(r)

    def test_aligns_portfolios_to_shortest(self, svc: PortfolioAnalyticsService) -> None:
        points = svc.performance_series(
            {
                "optimized": [_item(_market("a", [0.05] * 6), 1.0)],
                "benchmark": [_item(_market("b", [0.04] * 4, start=T0 + 2 * DAY), 1.0)],
            }
        )
        assert len(points) == 4
        assert set(points[0].values) == {"optimized", "benchmark"}
        assert points[0].timestamp_ms == (T0 + 2 * DAY) * 1000

    def test_cumulative_starts_after_first_step(self, svc: PortfolioAnalyticsService) -> None:
        points = svc.performance_series({"p": [_item(_market("a", [0.0365, 0.0]), 1.0)]})
        assert points[0].values["p"].cumulative_value == pytest.approx(100.01)
        assert points[1].values["p"].cumulative_value == pytest.approx(100.01)

    def test_omits_portfolio_without_history(self, svc: PortfolioAnalyticsService) -> None:
        points = svc.performance_series(
            {
                "optimized": [_item(_market("a", [0.05] * 3), 1.0)],
                "benchmark": [_item(None, 1.0, key="x")],
            }
        )
        assert len(points) == 3
        assert set(points[0].values) == {"optimized"}

    def test_empty_when_nothing_usable(self, svc: PortfolioAnalyticsService) -> None:
        assert svc.performance_series({}) == []
        assert svc.performance_series({"p": []}) == []


class TestPerformanceFrame:
    def test_columns_and_index(self, svc: PortfolioAnalyticsService) -> None:
        points = svc.performance_series(
            {
                "optimized": [_item(_market("a", [0.05] * 3), 1.0)],
                "benchmark": [_item(_market("b", [0.04] * 3), 1.0)],
            }
        )
        frame = svc.performance_frame(points)
        assert list(frame.columns) == [
            "optimized_apy",
            "optimized_return",
            "benchmark_apy",
            "benchmark_return",
        ]
        assert frame.index.name == "timestamp"
        assert frame.index[0] == pd.Timestamp(T0, unit="s", tz="UTC")
        assert len(frame) == 3

    def test_empty_frame(self, svc: PortfolioAnalyticsService) -> None:
        frame = svc.performance_frame([])
        assert frame.empty
        assert isinstance(frame.index, pd.DatetimeIndex)
