"""Benchmark extraction service.

Converts a reference vault allocation into PortfolioItems so it can be
measured by the same analytics as the optimized portfolio.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.domain.models.markets import MarketRecord
from src.domain.models.portfolio import PortfolioItem
from src.domain.models.vaults import Vault, VaultMarketExposure
from src.domain.services import statistics

logger = logging.getLogger(__name__)

DUST_THRESHOLD = 0.001   # 0.1 % of vault assets


def abbreviate_key(key: str, head: int = 6, tail: int = 4) -> str:
    """Shorten long hex market keys for display: 0x1234…abcd."""
    if len(key) <= head + tail + 1:
        return key
    return f"{key[:head]}…{key[-tail:]}"


class BenchmarkService:
    """Pure computation service for reference (vault) portfolios.

    Responsibilities:
    - Turn a vault's USD allocations into weighted PortfolioItems.
    - Index which vaults allocate to which markets.

    The class is stateless.
    """

    def extract(
        self,
        vault: Vault | None,
        markets: Sequence[MarketRecord],
        dust_threshold: float = DUST_THRESHOLD,
    ) -> list[PortfolioItem]:
        """Build benchmark items from a vault's allocation.

        weight = supply_usd / total_assets_usd (unknown supply counts as 0).
        mean_apy is the mean of the market's full yield history when the
        market is part of `markets`; otherwise both market and mean_apy are
        None.  Items at or below dust_threshold are dropped; a weight above 1
        (allocation larger than the reported total) is clamped to 1 and
        logged.  symbol_display is the market pair, or the abbreviated key
        for markets outside the universe.  Weights are not renormalised:
        they sum to less than 1 when the vault holds idle cash or dust was
        dropped.

        Returns:
            Items sorted by weight descending; [] when the vault is missing
            or its total is unknown or zero.
        """
        if vault is None:
            return []
        if not vault.total_assets_usd:
            logger.warning(
                "Vault %s has no total assets; benchmark unavailable", vault.address
            )
            return []

        by_key = {m.unique_key: m for m in markets}
        total = vault.total_assets_usd
        items: list[PortfolioItem] = []

        for allocation in vault.allocations:
            weight = (allocation.supply_usd or 0.0) / total
            if weight <= dust_threshold:
                continue
            if weight > 1.0:
                logger.warning(
                    "Vault %s allocates %.4f of its total to %s; clamped to 1.0",
                    vault.address,
                    weight,
                    allocation.market_key,
                )
                weight = 1.0
            market = by_key.get(allocation.market_key)
            mean_apy = (
                statistics.mean(market.history_apys)
                if market is not None and market.has_history
                else None
            )
            items.append(
                PortfolioItem(
                    unique_key=allocation.market_key,
                    market=market,
                    weight=weight,
                    mean_apy=mean_apy,
                    symbol_display=(
                        market.display_symbol
                        if market is not None
                        else abbreviate_key(allocation.market_key)
                    ),
                )
            )

        items.sort(key=lambda item: item.weight, reverse=True)
        return items

    def market_keys(self, vaults: Sequence[Vault]) -> set[str]:
        """Every market key allocated to by any of the vaults."""
        return {a.market_key for vault in vaults for a in vault.allocations}

    def market_exposures(
        self,
        vaults: Sequence[Vault],
    ) -> dict[str, list[VaultMarketExposure]]:
        """Map market key → exposures of every vault allocating to it, in vault order."""
        exposures: dict[str, list[VaultMarketExposure]] = {}
        for vault in vaults:
            total = vault.total_assets_usd or 0.0
            for allocation in vault.allocations:
                allocation_usd = allocation.supply_usd or 0.0
                exposures.setdefault(allocation.market_key, []).append(
                    VaultMarketExposure(
                        vault_address=vault.address,
                        vault_name=vault.name,
                        vault_symbol=vault.symbol,
                        allocation_usd=allocation_usd,
                        allocation_pct=allocation_usd / total * 100 if total > 0 else 0.0,
                    )
                )
        return exposures
