"""Optimized-vs-benchmark comparison.

Runs the full pipeline for one market universe and one reference vault:

    markets → OptimizationService        → optimized PortfolioMetrics
    vault   → BenchmarkService           → benchmark items
    both    → PortfolioAnalyticsService  → benchmark metrics + performance replay
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from src.domain.models.markets import MarketRecord
from src.domain.models.optimization import ComparisonConfig
from src.domain.models.portfolio import (
    BenchmarkMetrics,
    PerformancePoint,
    PortfolioItem,
    PortfolioMetrics,
)
from src.domain.models.vaults import Vault
from src.domain.services.analytics import PortfolioAnalyticsService
from src.domain.services.benchmark import BenchmarkService
from src.domain.services.eligibility import ReservedPrefixPredicate
from src.domain.services.optimization import OptimizationService

logger = logging.getLogger(__name__)

OPTIMIZED_LABEL = "optimized"
BENCHMARK_LABEL = "benchmark"


@dataclass
class PortfolioComparison:
    """Everything the presentation layer needs to compare two portfolios.

    optimized is None when no market was eligible; benchmark is None when
    the vault is missing or none of its markets has history.
    """

    optimized: PortfolioMetrics | None
    benchmark_items: list[PortfolioItem] = field(default_factory=list)
    benchmark: BenchmarkMetrics | None = None
    performance: list[PerformancePoint] = field(default_factory=list)


class ComparisonService:
    """Optimized portfolio vs reference vault for one market universe.

    All thresholds come from a ComparisonConfig; the infrastructure layer
    builds one from environment settings.
    """

    def __init__(
        self,
        config: ComparisonConfig | None = None,
        optimization: OptimizationService | None = None,
        benchmark: BenchmarkService | None = None,
        analytics: PortfolioAnalyticsService | None = None,
    ) -> None:
        self._config = config or ComparisonConfig()
        self._optimization = optimization or OptimizationService()
        self._benchmark = benchmark or BenchmarkService()
        self._analytics = analytics or PortfolioAnalyticsService()

    def compare(
        self,
        markets: Sequence[MarketRecord],
        vault: Vault | None,
    ) -> PortfolioComparison:
        c = self._config
        optimized = self._optimization.optimize(
            markets,
            eligibility_config=c.eligibility,
            search_config=c.search,
            is_excluded=ReservedPrefixPredicate(c.excluded_prefixes),
            average_window_days=c.average_window_days,
        )
        benchmark_items = self._benchmark.extract(vault, markets, c.dust_threshold)
        benchmark = self._analytics.calculate_metrics(benchmark_items, c.average_window_days)

        portfolios: dict[str, Sequence[PortfolioItem]] = {}
        if optimized is not None:
            portfolios[OPTIMIZED_LABEL] = optimized.items
        if benchmark_items:
            portfolios[BENCHMARK_LABEL] = benchmark_items
        performance = self._analytics.performance_series(portfolios)

        logger.info(
            "Compared %d markets: optimized=%s, benchmark=%s, %d performance points",
            len(markets),
            "available" if optimized is not None else "unavailable",
            "available" if benchmark is not None else "unavailable",
            len(performance),
        )
        return PortfolioComparison(
            optimized=optimized,
            benchmark_items=benchmark_items,
            benchmark=benchmark,
            performance=performance,
        )
