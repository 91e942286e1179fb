"""Optimization domain models.

TargetBand        — acceptable range of blended expected APY
EligibilityConfig — liquidity / history thresholds for candidate selection
SearchConfig      — randomized simplex search parameters
ComparisonConfig  — everything one optimized-vs-benchmark run needs
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import BandPosition

_DEFAULT_TARGET_MIN = 0.07
_DEFAULT_TARGET_MAX = 0.08

DEFAULT_EXCLUDED_PREFIXES: tuple[str, ...] = ("PT-",)


class TargetBand(BaseModel):
    """Closed interval [min_apy, max_apy] the optimizer steers toward.

    distance() is 0 inside the band, otherwise the absolute gap to the
    nearer bound.
    """

    model_config = ConfigDict(frozen=True)

    min_apy: float = _DEFAULT_TARGET_MIN
    max_apy: float = _DEFAULT_TARGET_MAX

    @model_validator(mode="after")
    def _valid_range(self) -> TargetBand:
        if self.min_apy > self.max_apy:
            raise ValueError(
                f"min_apy ({self.min_apy}) must not exceed max_apy ({self.max_apy})"
            )
        return self

    @property
    def midpoint(self) -> float:
        return (self.min_apy + self.max_apy) / 2

    def contains(self, value: float) -> bool:
        return self.min_apy <= value <= self.max_apy

    def distance(self, value: float) -> float:
        if value < self.min_apy:
            return self.min_apy - value
        if value > self.max_apy:
            return value - self.max_apy
        return 0.0

    def position(self, value: float) -> BandPosition:
        if value < self.min_apy:
            return BandPosition.BELOW
        if value > self.max_apy:
            return BandPosition.ABOVE
        return BandPosition.INSIDE


class EligibilityConfig(BaseModel):
    """Thresholds applied before the search.

    min_supply_usd     — markets with less (or unknown) supply are rejected
    min_history_points — markets with a shorter yield history are rejected
    max_candidates     — size cap on the ranked candidate pool
    """

    model_config = ConfigDict(frozen=True)

    min_supply_usd: float = Field(default=500_000.0, ge=0.0)
    min_history_points: int = Field(default=5, ge=1)
    max_candidates: int = Field(default=12, ge=1)


class SearchConfig(BaseModel):
    """Parameters of the randomized simplex search.

    Every sampled portfolio holds between min_active_assets and
    max_active_assets markets, each at min_weight or more.
    """

    model_config = ConfigDict(frozen=True)

    iterations: int = Field(default=3000, ge=0)
    min_weight: float = Field(default=0.05, ge=0.0, lt=1.0)
    min_active_assets: int = Field(default=2, ge=1)
    max_active_assets: int = Field(default=4, ge=1)
    target_band: TargetBand = Field(default_factory=TargetBand)

    @model_validator(mode="after")
    def _active_range(self) -> SearchConfig:
        if self.min_active_assets > self.max_active_assets:
            raise ValueError(
                f"min_active_assets ({self.min_active_assets}) must not exceed "
                f"max_active_assets ({self.max_active_assets})"
            )
        if self.max_active_assets * self.min_weight > 1.0:
            raise ValueError(
                f"max_active_assets × min_weight "
                f"({self.max_active_assets} × {self.min_weight}) exceeds 1.0; "
                "full investment cannot be satisfied."
            )
        return self

    @classmethod
    def default(cls) -> SearchConfig:
        return cls()


class ComparisonConfig(BaseModel):
    """Parameters of one optimized-vs-benchmark comparison.

    excluded_prefixes   — asset symbol / name prefixes that are never allocated to
    dust_threshold      — benchmark allocations at or below this weight are dropped
    average_window_days — trailing window for the average APY of both portfolios
    """

    model_config = ConfigDict(frozen=True)

    eligibility: EligibilityConfig = Field(default_factory=EligibilityConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    excluded_prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES
    dust_threshold: float = Field(default=0.001, ge=0.0, lt=1.0)
    average_window_days: int = Field(default=7, gt=0)
