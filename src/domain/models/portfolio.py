"""Portfolio result models.

PortfolioItem        — one market allocation (optimizer output or benchmark)
PortfolioMetrics     — optimized portfolio with search statistics
BenchmarkMetrics     — the same statistics for an arbitrary item list
PortfolioSeriesPoint — one step of a portfolio's blended daily APY series
PerformanceValue     — one portfolio's APY and indexed value at a step
PerformancePoint     — one synchronized step across compared portfolios
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import SelectionSource
from .markets import MarketRecord


class PortfolioItem(BaseModel):
    """Allocation of a fraction of capital to one market.

    market is None when the allocation references a market outside the
    fetched universe (benchmark vaults only).  Weights across a portfolio
    are not forced to sum to 1; consumers renormalise over the items they
    can actually use.
    """

    model_config = ConfigDict(frozen=True)

    unique_key: str
    market: MarketRecord | None = None
    weight: float = Field(ge=0.0, le=1.0)
    mean_apy: float | None = None
    symbol_display: str | None = None

    @property
    def label(self) -> str:
        if self.symbol_display is not None:
            return self.symbol_display
        if self.market is not None:
            return self.market.display_symbol
        return self.unique_key


class BenchmarkMetrics(BaseModel):
    """Blended statistics of a weighted item list.

    current_apy / average_apy are None when no item carries the data they
    need.  sharpe = expected_return / expected_risk, or expected_return
    itself when risk is zero (no risk-free rate is subtracted).
    """

    model_config = ConfigDict(frozen=True)

    current_apy: float | None
    average_apy: float | None
    average_window_days: int = Field(gt=0)
    expected_return: float
    expected_risk: float = Field(ge=0.0)
    sharpe: float
    active_markets: int = Field(ge=0)


class PortfolioMetrics(BaseModel):
    """Result of one optimization run.

    expected_return / expected_risk / sharpe are computed on the candidate
    pool's trimmed series with the covariance matrix, before items below
    the minimum weight are dropped.  hhi = Σ wᵢ² over the retained items;
    effective_n = 1 / hhi.
    """

    model_config = ConfigDict(frozen=True)

    current_apy: float | None
    average_apy: float | None
    average_window_days: int = Field(gt=0)
    expected_return: float
    expected_risk: float = Field(ge=0.0)
    sharpe: float
    items: list[PortfolioItem]
    eligible_markets: int = Field(ge=1)
    target_apy_min: float
    target_apy_max: float
    selection: SelectionSource
    hhi: float = Field(gt=0.0, le=1.0 + 1e-9)
    effective_n: float = Field(ge=1.0 - 1e-9)
    explanation: str

    @model_validator(mode="after")
    def _effective_n_consistent(self) -> PortfolioMetrics:
        expected = 1.0 / self.hhi
        if abs(self.effective_n - expected) > 1e-6:
            raise ValueError(
                f"effective_n ({self.effective_n:.6f}) must equal 1/hhi ({expected:.6f})"
            )
        return self

    @property
    def in_band(self) -> bool:
        return self.target_apy_min <= self.expected_return <= self.target_apy_max


class PortfolioSeriesPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    apy: float


class PerformanceValue(BaseModel):
    """apy is the blended daily APY; cumulative_value starts from 100."""

    model_config = ConfigDict(frozen=True)

    apy: float
    cumulative_value: float = Field(gt=0.0)


class PerformancePoint(BaseModel):
    """All compared portfolios at one aligned time step, keyed by label."""

    model_config = ConfigDict(frozen=True)

    timestamp_ms: int
    values: dict[str, PerformanceValue]
