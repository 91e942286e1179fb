"""Lending market domain models.

YieldPoint      — one (timestamp, APY) observation of a market's supply yield
AssetInfo       — symbol / name of a loan or collateral asset
MarketRecord    — immutable snapshot of one lending market with yield history
CandidateMarket — a MarketRecord with derived fields for one optimization run

All are immutable value objects; markets have no identity beyond unique_key.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class YieldPoint(BaseModel):
    """Annualised net supply yield at one sampling instant.

    timestamp is in seconds since the epoch; apy is a decimal fraction
    (0.07 = 7 %).
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    apy: float


class AssetInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    name: str | None = None


class MarketRecord(BaseModel):
    """Snapshot of one lending market as supplied by the data layer.

    collateral_asset is None for idle markets.
    current_supply_usd / current_net_supply_apy are None when the data
    layer could not resolve them; consumers must exclude such markets rather
    than treat the value as zero.

    yield_history is chronological with one point per sampling interval
    (typically daily).  Markets are compared by trimming to a common
    trailing length, so every series is assumed to share the same cadence.
    """

    model_config = ConfigDict(frozen=True)

    unique_key: str = Field(min_length=1)
    loan_asset: AssetInfo
    collateral_asset: AssetInfo | None = None
    current_supply_usd: float | None = None
    current_net_supply_apy: float | None = None
    yield_history: list[YieldPoint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _history_sorted(self) -> MarketRecord:
        timestamps = [p.timestamp for p in self.yield_history]
        if any(b < a for a, b in zip(timestamps, timestamps[1:])):
            raise ValueError(
                f"yield_history for market {self.unique_key!r} must be sorted "
                "ascending by timestamp"
            )
        return self

    @property
    def history_apys(self) -> list[float]:
        """Bare APY values of yield_history, oldest first."""
        return [p.apy for p in self.yield_history]

    @property
    def has_history(self) -> bool:
        return len(self.yield_history) > 0

    @property
    def asset_labels(self) -> list[str]:
        """Every symbol and name attached to the market, collateral first."""
        labels: list[str] = []
        for asset in (self.collateral_asset, self.loan_asset):
            if asset is None:
                continue
            labels.append(asset.symbol)
            if asset.name is not None:
                labels.append(asset.name)
        return labels

    @property
    def display_symbol(self) -> str:
        if self.collateral_asset is None:
            return self.loan_asset.symbol
        return f"{self.collateral_asset.symbol}/{self.loan_asset.symbol}"


class CandidateMarket(BaseModel):
    """A market that survived eligibility filtering, with per-run statistics.

    trimmed_series holds the trailing N APY values, where N is the shortest
    history among all candidates of the same run.  rank_score is only used
    to pre-select the candidate pool; the search re-evaluates portfolio
    level risk and return itself.
    """

    model_config = ConfigDict(frozen=True)

    market: MarketRecord
    trimmed_series: list[float] = Field(min_length=1)
    mean_apy: float
    rank_score: float

    @property
    def unique_key(self) -> str:
        return self.market.unique_key
