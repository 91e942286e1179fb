"""Domain services package."""

from .analytics import PortfolioAnalyticsService
from .benchmark import BenchmarkService
from .comparison import ComparisonService, PortfolioComparison
from .eligibility import EligibilityService, ReservedPrefixPredicate
from .optimization import OptimizationService, PortfolioSearchService

__all__ = [
    "BenchmarkService",
    "ComparisonService",
    "EligibilityService",
    "OptimizationService",
    "PortfolioAnalyticsService",
    "PortfolioComparison",
    "PortfolioSearchService",
    "ReservedPrefixPredicate",
]
