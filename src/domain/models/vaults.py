"""Reference vault domain models.

A Vault is an externally managed allocation across lending markets.  It is
used as the benchmark the optimized portfolio is compared against.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class VaultAllocation(BaseModel):
    """USD supplied by a vault to one market; supply_usd may be unknown."""

    model_config = ConfigDict(frozen=True)

    market_key: str
    supply_usd: float | None = Field(default=None, ge=0.0)


class Vault(BaseModel):
    """A vault's current state.

    total_assets_usd is the denominator for allocation weights.  The sum of
    allocations may be lower than the total when the vault holds idle cash.
    """

    model_config = ConfigDict(frozen=True)

    address: str
    name: str = ""
    symbol: str = ""
    total_assets_usd: float | None = Field(default=None, ge=0.0)
    allocations: list[VaultAllocation] = Field(default_factory=list)


class VaultMarketExposure(BaseModel):
    """One vault's exposure to one market.

    allocation_pct is a percentage (0–100) of the vault's total assets;
    0.0 when the vault total is unknown.
    """

    model_config = ConfigDict(frozen=True)

    vault_address: str
    vault_name: str
    vault_symbol: str
    allocation_usd: float = Field(ge=0.0)
    allocation_pct: float = Field(ge=0.0)
