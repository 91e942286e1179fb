"""Domain model package.

All domain objects are pure Python / Pydantic models with no infrastructure
dependencies.  Import from this package to avoid coupling application code
to individual module paths.
"""

from .enums import BandPosition, SelectionSource
from .markets import AssetInfo, CandidateMarket, MarketRecord, YieldPoint
from .optimization import ComparisonConfig, EligibilityConfig, SearchConfig, TargetBand
from .portfolio import (
    BenchmarkMetrics,
    PerformancePoint,
    PerformanceValue,
    PortfolioItem,
    PortfolioMetrics,
    PortfolioSeriesPoint,
)
from .vaults import Vault, VaultAllocation, VaultMarketExposure

__all__ = [
    # enums
    "BandPosition",
    "SelectionSource",
    # markets
    "AssetInfo",
    "CandidateMarket",
    "MarketRecord",
    "YieldPoint",
    # optimization
    "ComparisonConfig",
    "EligibilityConfig",
    "SearchConfig",
    "TargetBand",
    # portfolio
    "BenchmarkMetrics",
    "PerformancePoint",
    "PerformanceValue",
    "PortfolioItem",
    "PortfolioMetrics",
    "PortfolioSeriesPoint",
    # vaults
    "Vault",
    "VaultAllocation",
    "VaultMarketExposure",
]
