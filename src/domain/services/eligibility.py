"""Market eligibility service.

Selects the candidate pool for the portfolio search from raw market records.

Pipeline:
    select_candidates
        → _filter_markets        (liquidity, exclusion predicate, history length)
        → _build_candidates      (trim to common trailing length, mean, score)
        → rank and cap           (descending rank_score, top max_candidates)

Alignment precondition: every market is sampled at the same cadence, so
trimming to the shortest trailing length puts all candidates on the same
time basis.  Timestamps are not matched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.domain.models.markets import CandidateMarket, MarketRecord
from src.domain.models.optimization import (
    DEFAULT_EXCLUDED_PREFIXES,
    EligibilityConfig,
    TargetBand,
)
from src.domain.services import statistics

logger = logging.getLogger(__name__)

MarketPredicate = Callable[[MarketRecord], bool]

_VOLATILITY_PENALTY = 0.35
_TARGET_PENALTY = 0.5
_VARIANCE_FLOOR = 1e-6


@dataclass(frozen=True)
class ReservedPrefixPredicate:
    """True when any asset symbol or name of the market starts with a prefix.

    The default prefix "PT-" marks fixed-maturity principal tokens, whose
    markets expire and distort a rolling-yield optimizer.
    """

    prefixes: tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES

    def __call__(self, market: MarketRecord) -> bool:
        if not self.prefixes:
            return False
        return any(label.startswith(self.prefixes) for label in market.asset_labels)


class EligibilityService:
    """Pure computation service for candidate pre-selection.

    The class is stateless; thresholds, the target band and the exclusion
    predicate are passed per call.
    """

    def select_candidates(
        self,
        markets: Sequence[MarketRecord],
        config: EligibilityConfig | None = None,
        target_band: TargetBand | None = None,
        is_excluded: MarketPredicate | None = None,
    ) -> list[CandidateMarket]:
        """Filter, align and rank markets; most preferred first.

        Args:
            markets: Raw market records from the data layer.
            config: Liquidity / history thresholds and the pool size cap.
            target_band: Band whose midpoint anchors the closeness penalty.
            is_excluded: Predicate for markets that must never be allocated
                to; defaults to ReservedPrefixPredicate().

        Returns:
            Up to config.max_candidates candidates sorted by rank_score
            descending.  An empty list means no market qualifies.
        """
        config = config or EligibilityConfig()
        target_band = target_band or TargetBand()
        is_excluded = is_excluded if is_excluded is not None else ReservedPrefixPredicate()

        survivors = self._filter_markets(markets, config, is_excluded)
        if not survivors:
            logger.debug("No markets passed eligibility filtering (%d offered)", len(markets))
            return []

        candidates = self._build_candidates(survivors, target_band)
        candidates.sort(key=lambda c: c.rank_score, reverse=True)
        selected = candidates[: config.max_candidates]
        logger.debug(
            "Selected %d of %d eligible markets (series length %d)",
            len(selected),
            len(candidates),
            len(selected[0].trimmed_series),
        )
        return selected

    # ------------------------------------------------------------------ #
    # Pipeline stages                                                      #
    # ------------------------------------------------------------------ #

    def _filter_markets(
        self,
        markets: Sequence[MarketRecord],
        config: EligibilityConfig,
        is_excluded: MarketPredicate,
    ) -> list[MarketRecord]:
        liquid = [
            m for m in markets
            if m.current_supply_usd is not None
            and m.current_supply_usd >= config.min_supply_usd
        ]
        permanent = [m for m in liquid if not is_excluded(m)]
        seasoned = [
            m for m in permanent if len(m.yield_history) >= config.min_history_points
        ]
        logger.debug(
            "Eligibility: %d offered, %d illiquid, %d excluded, %d short history",
            len(markets),
            len(markets) - len(liquid),
            len(liquid) - len(permanent),
            len(permanent) - len(seasoned),
        )
        return seasoned

    def _build_candidates(
        self,
        markets: list[MarketRecord],
        target_band: TargetBand,
    ) -> list[CandidateMarket]:
        length = min(len(m.yield_history) for m in markets)
        candidates: list[CandidateMarket] = []
        for market in markets:
            series = market.history_apys[-length:]
            mean_apy = statistics.mean(series)
            candidates.append(
                CandidateMarket(
                    market=market,
                    trimmed_series=series,
                    mean_apy=mean_apy,
                    rank_score=self.rank_score(series, mean_apy, target_band),
                )
            )
        return candidates

    @staticmethod
    def rank_score(series: Sequence[float], mean_apy: float, target_band: TargetBand) -> float:
        """Heuristic pre-selection score.

            score = μ − 0.35 · √max(σ², 1e-6) − 0.5 · |μ − band midpoint|
        """
        volatility = statistics.population_variance(series)
        volatility = max(volatility, _VARIANCE_FLOOR) ** 0.5
        target_penalty = abs(mean_apy - target_band.midpoint)
        return mean_apy - _VOLATILITY_PENALTY * volatility - _TARGET_PENALTY * target_penalty
