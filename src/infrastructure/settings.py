"""Optimizer settings loaded from the environment (prefix YIELD_OPTIMIZER_)."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.models.optimization import (
    ComparisonConfig,
    EligibilityConfig,
    SearchConfig,
    TargetBand,
)


class OptimizerSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="YIELD_OPTIMIZER_",
        env_file=".env",
        extra="ignore",
    )

    # eligibility
    min_supply_usd: float = Field(default=500_000.0, ge=0.0)
    min_history_points: int = Field(default=5, ge=1)
    max_candidates: int = Field(default=12, ge=1)
    excluded_prefixes: list[str] = Field(default_factory=lambda: ["PT-"])

    # search
    iterations: int = Field(default=3000, ge=0)
    min_weight: float = Field(default=0.05, ge=0.0, lt=1.0)
    target_apy_min: float = 0.07
    target_apy_max: float = 0.08

    # metrics
    dust_threshold: float = Field(default=0.001, ge=0.0, lt=1.0)
    average_window_days: int = Field(default=7, gt=0)

    # logging
    log_level: str = "INFO"
    json_logs: bool = False

    def target_band(self) -> TargetBand:
        return TargetBand(min_apy=self.target_apy_min, max_apy=self.target_apy_max)

    def eligibility_config(self) -> EligibilityConfig:
        return EligibilityConfig(
            min_supply_usd=self.min_supply_usd,
            min_history_points=self.min_history_points,
            max_candidates=self.max_candidates,
        )

    def search_config(self) -> SearchConfig:
        return SearchConfig(
            iterations=self.iterations,
            min_weight=self.min_weight,
            target_band=self.target_band(),
        )

    def comparison_config(self) -> ComparisonConfig:
        return ComparisonConfig(
            eligibility=self.eligibility_config(),
            search=self.search_config(),
            excluded_prefixes=tuple(self.excluded_prefixes),
            dust_threshold=self.dust_threshold,
            average_window_days=self.average_window_days,
        )


@lru_cache
def get_settings() -> OptimizerSettings:
    return OptimizerSettings()
