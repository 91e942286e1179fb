"""Portfolio analytics service: blended yields, risk, and performance replay.

Works on any list of PortfolioItem (optimizer output or a benchmark vault)
so both portfolios are measured by the same code.

Items without the data a statistic needs are excluded from both the
numerator and the renormalised weight denominator, never treated as zero.
Series are aligned by trimming to the shortest trailing length (uniform
sampling cadence is a precondition).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import numpy as np
import pandas as pd

from src.domain.models.markets import MarketRecord
from src.domain.models.portfolio import (
    BenchmarkMetrics,
    PerformancePoint,
    PerformanceValue,
    PortfolioItem,
    PortfolioSeriesPoint,
)
from src.domain.services import statistics

logger = logging.getLogger(__name__)

INITIAL_INDEX_VALUE = 100.0
DAYS_PER_YEAR = 365
DEFAULT_AVERAGE_WINDOW_DAYS = 7

_RISK_TOL = 1e-12


class PortfolioAnalyticsService:
    """Pure computation service for portfolio-level statistics.

    Responsibilities:
    - Blend current and trailing-average APY across weighted items.
    - Build the weighted daily APY series of a portfolio.
    - Compute expected return / risk / Sharpe-like ratio of that series.
    - Replay several portfolios on a common time axis as indexed values.

    The class is stateless; "no usable data" is reported as None.
    """

    # ------------------------------------------------------------------ #
    # Blended yields                                                       #
    # ------------------------------------------------------------------ #

    def weighted_current_apy(self, items: Sequence[PortfolioItem]) -> float | None:
        """Weight-blend the latest APY of items whose market reports one."""
        usable = [
            (item.weight, item.market.current_net_supply_apy)
            for item in items
            if item.market is not None
            and item.market.current_net_supply_apy is not None
            and item.weight > 0
        ]
        weights = _normalize_weights([w for w, _ in usable])
        if weights is None:
            return None
        return float(np.dot(weights, [apy for _, apy in usable]))

    def weighted_average_apy(
        self,
        items: Sequence[PortfolioItem],
        days: int = DEFAULT_AVERAGE_WINDOW_DAYS,
    ) -> float | None:
        """Weight-blend each item's mean APY over its own last `days` points."""
        if days <= 0:
            raise ValueError(f"days must be positive, got {days}")
        usable = [
            (item.weight, statistics.mean(market.history_apys[-days:]))
            for item, market in _items_with_history(items)
        ]
        weights = _normalize_weights([w for w, _ in usable])
        if weights is None:
            return None
        return float(np.dot(weights, [avg for _, avg in usable]))

    # ------------------------------------------------------------------ #
    # Weighted series and metrics                                          #
    # ------------------------------------------------------------------ #

    def weighted_series(
        self,
        items: Sequence[PortfolioItem],
    ) -> list[PortfolioSeriesPoint] | None:
        """Blended daily APY series over the shortest common trailing length.

        Timestamps (milliseconds) come from the first item with history.
        Returns None when no item has history or the total weight is zero.
        """
        with_history = _items_with_history(items)
        if not with_history:
            return None

        weights = _normalize_weights([item.weight for item, _ in with_history])
        if weights is None:
            return None

        length = min(len(market.yield_history) for _, market in with_history)
        aligned = np.array(
            [market.history_apys[-length:] for _, market in with_history]
        )   # shape (n_items, length)
        blended = np.asarray(weights) @ aligned

        reference = with_history[0][1].yield_history[-length:]
        return [
            PortfolioSeriesPoint(timestamp_ms=point.timestamp * 1000, apy=float(apy))
            for point, apy in zip(reference, blended)
        ]

    def calculate_metrics(
        self,
        items: Sequence[PortfolioItem],
        days: int = DEFAULT_AVERAGE_WINDOW_DAYS,
    ) -> BenchmarkMetrics | None:
        """Blended APY, risk and Sharpe-like ratio of a weighted item list.

        Returns None ("benchmark unavailable") when no item has history or
        the items carry no weight.
        """
        series = self.weighted_series(items)
        if series is None:
            logger.info("Portfolio metrics unavailable: no weighted history among %d items", len(items))
            return None

        apys = [p.apy for p in series]
        expected_return = statistics.mean(apys)
        expected_risk = statistics.standard_deviation(apys)

        return BenchmarkMetrics(
            current_apy=self.weighted_current_apy(items),
            average_apy=self.weighted_average_apy(items, days),
            average_window_days=days,
            expected_return=expected_return,
            expected_risk=expected_risk,
            sharpe=sharpe_ratio(expected_return, expected_risk),
            active_markets=len(items),
        )

    # ------------------------------------------------------------------ #
    # Performance replay                                                   #
    # ------------------------------------------------------------------ #

    def performance_series(
        self,
        portfolios: Mapping[str, Sequence[PortfolioItem]],
    ) -> list[PerformancePoint]:
        """Replay portfolios on a shared time axis.

        Each portfolio's cumulative value starts at 100 and compounds
        value *= 1 + apy / 365 at every step up to and including the
        current one.  Portfolios without a usable series are omitted;
        timestamps come from the first remaining portfolio.
        """
        series_by_label: dict[str, list[PortfolioSeriesPoint]] = {}
        for label, items in portfolios.items():
            series = self.weighted_series(items)
            if series is None:
                logger.debug("Portfolio %r has no usable history; omitted from replay", label)
                continue
            series_by_label[label] = series

        if not series_by_label:
            return []

        length = min(len(s) for s in series_by_label.values())
        aligned = {label: s[-length:] for label, s in series_by_label.items()}
        cumulative = {
            label: compound_index([p.apy for p in s]) for label, s in aligned.items()
        }
        reference = next(iter(aligned.values()))

        return [
            PerformancePoint(
                timestamp_ms=reference[i].timestamp_ms,
                values={
                    label: PerformanceValue(apy=s[i].apy, cumulative_value=cumulative[label][i])
                    for label, s in aligned.items()
                },
            )
            for i in range(length)
        ]

    def performance_frame(self, points: Sequence[PerformancePoint]) -> pd.DataFrame:
        """Chart-ready frame: UTC timestamp index, <label>_apy / <label>_return columns."""
        if not points:
            return pd.DataFrame(index=pd.DatetimeIndex([], tz="UTC", name="timestamp"))

        rows = []
        for point in points:
            row: dict[str, object] = {"timestamp": point.timestamp_ms}
            for label, value in point.values.items():
                row[f"{label}_apy"] = value.apy
                row[f"{label}_return"] = value.cumulative_value
            rows.append(row)

        frame = pd.DataFrame(rows)
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], unit="ms", utc=True)
        return frame.set_index("timestamp")


# ─────────────────────────────────────────────────────────────────────────── #
# Module-level helpers                                                         #
# ─────────────────────────────────────────────────────────────────────────── #


def sharpe_ratio(expected_return: float, expected_risk: float) -> float:
    """Return / risk with no risk-free rate; the return itself when risk is ~0."""
    if expected_risk > _RISK_TOL:
        return expected_return / expected_risk
    return expected_return


def compound_index(apys: Sequence[float], start: float = INITIAL_INDEX_VALUE) -> list[float]:
    """Indexed value after each daily step: vₜ = vₜ₋₁ · (1 + apyₜ / 365)."""
    values: list[float] = []
    value = start
    for apy in apys:
        value *= 1 + apy / DAYS_PER_YEAR
        values.append(value)
    return values


def _normalize_weights(weights: Sequence[float]) -> list[float] | None:
    """Scale weights to sum to 1; None when empty or the total is not positive."""
    if not weights:
        return None
    total = float(sum(weights))
    if total <= 0:
        return None
    return [w / total for w in weights]


def _items_with_history(
    items: Sequence[PortfolioItem],
) -> list[tuple[PortfolioItem, MarketRecord]]:
    return [
        (item, item.market)
        for item in items
        if item.market is not None and item.market.has_history
    ]
