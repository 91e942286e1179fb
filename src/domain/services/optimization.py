"""Portfolio optimization service.

Targets a blended expected APY band (default 7–8 %) while minimising the
variance of the blended APY series:

    find w  s.t.  Σwᵢ = 1,  wᵢ = 0 or wᵢ ≥ min_weight,  2 ≤ |{wᵢ > 0}| ≤ 4
    prefer  w'μ ∈ band  with minimal  √(w'Σw)

The minimum-lot and cardinality constraints make the problem
combinatorial, so instead of a QP solver a seeded randomized search over
the simplex is used:

  - sample an active set of 2–4 markets and random weights ≥ min_weight
  - keep the best in-band portfolio (higher return unless within 0.1 pp,
    then lower risk)
  - otherwise keep the best fallback (closer to the band, then higher
    Sharpe-like ratio, then lower risk)
  - always also evaluate the equal-weight portfolio

The generator is seeded from the candidate keys, so the same candidate
set reproduces the same weights.  All methods are pure computation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from src.domain.models.enums import SelectionSource
from src.domain.models.markets import CandidateMarket, MarketRecord
from src.domain.models.optimization import EligibilityConfig, SearchConfig, TargetBand
from src.domain.models.portfolio import PortfolioItem, PortfolioMetrics
from src.domain.services import statistics
from src.domain.services.analytics import (
    DEFAULT_AVERAGE_WINDOW_DAYS,
    PortfolioAnalyticsService,
    sharpe_ratio,
)
from src.domain.services.eligibility import EligibilityService, MarketPredicate
from src.domain.services.sampling import SeededRandom

logger = logging.getLogger(__name__)

_MATERIAL_DIFF = 0.001      # 0.1 pp; smaller differences fall through to the next criterion


# ─────────────────────────────────────────────────────────────────────────── #
# Output types                                                                 #
# ─────────────────────────────────────────────────────────────────────────── #


@dataclass
class CandidatePortfolio:
    """One evaluated weight vector, aligned to the candidate list."""

    weights: np.ndarray
    expected_return: float
    expected_risk: float
    sharpe: float
    target_gap: float


@dataclass
class SearchResult:
    """Winner of a search and how it was reached.

    in_band_count counts the sampled vectors (equal weight included) whose
    expected return fell inside the target band.
    """

    portfolio: CandidatePortfolio
    selection: SelectionSource
    evaluated: int
    in_band_count: int


# ─────────────────────────────────────────────────────────────────────────── #
# Search engine                                                                #
# ─────────────────────────────────────────────────────────────────────────── #


class PortfolioSearchService:
    """Seeded randomized simplex search over a candidate pool.

    Responsibilities:
      - Sample cardinality- and minimum-weight-constrained weight vectors.
      - Evaluate return, risk and Sharpe-like ratio of each vector.
      - Track the best in-band and best fallback vector.
      - Map the winning vector back onto candidates as PortfolioItems.

    The class is stateless; the generator lives inside each search() call.
    """

    def search(
        self,
        candidates: Sequence[CandidateMarket],
        covariance: np.ndarray,
        config: SearchConfig | None = None,
    ) -> SearchResult:
        """Run the randomized search.

        Args:
            candidates: Non-empty candidate pool (order fixes the seed).
            covariance: K×K covariance matrix of the candidates' trimmed series.
            config: Iterations, minimum weight, active-set range and band.

        Raises:
            ValueError: If candidates is empty or covariance is not K×K.
        """
        config = config or SearchConfig()
        k = len(candidates)
        if k == 0:
            raise ValueError("search requires at least one candidate market")
        if covariance.shape != (k, k):
            raise ValueError(
                f"covariance must be {k}×{k} for {k} candidates, got shape {covariance.shape}"
            )

        band = config.target_band
        means = np.array([c.mean_apy for c in candidates])
        rng = SeededRandom.from_keys(c.unique_key for c in candidates)

        best_in_band: CandidatePortfolio | None = None
        best_fallback: CandidatePortfolio | None = None
        in_band_count = 0

        for _ in range(config.iterations):
            weights = self.sample_weights(k, rng, config)
            candidate = self.evaluate(weights, means, covariance, band)
            if band.contains(candidate.expected_return):
                in_band_count += 1
                if best_in_band is None or compare_in_band(candidate, best_in_band) < 0:
                    best_in_band = candidate
            elif best_fallback is None or compare_fallback(candidate, best_fallback) < 0:
                best_fallback = candidate

        equal = self.evaluate(np.full(k, 1.0 / k), means, covariance, band)
        if band.contains(equal.expected_return):
            in_band_count += 1
            if best_in_band is None or compare_in_band(equal, best_in_band) < 0:
                best_in_band = equal
        elif best_fallback is None or compare_fallback(equal, best_fallback) < 0:
            best_fallback = equal

        if best_in_band is not None:
            winner, selection = best_in_band, SelectionSource.IN_BAND
        else:
            winner = best_fallback if best_fallback is not None else equal
            selection = SelectionSource.FALLBACK
        if winner is equal:
            selection = SelectionSource.EQUAL_WEIGHT

        logger.debug(
            "Search over %d candidates: %d/%d in band, selected %s "
            "(return %.4f, risk %.6f)",
            k,
            in_band_count,
            config.iterations + 1,
            selection.value,
            winner.expected_return,
            winner.expected_risk,
        )
        return SearchResult(
            portfolio=winner,
            selection=selection,
            evaluated=config.iterations + 1,
            in_band_count=in_band_count,
        )

    def sample_weights(self, k: int, rng: SeededRandom, config: SearchConfig) -> np.ndarray:
        """Draw one weight vector with 2–4 active markets (capped at k).

        Active weights are wᵢ = min_weight + nᵢ · (1 − active · min_weight)
        where n is a normalised vector of uniform draws, so every active
        weight is ≥ min_weight and the vector sums to 1.
        """
        spread = config.max_active_assets - config.min_active_assets + 1
        active = min(k, config.min_active_assets + rng.randint_below(spread))
        selected = rng.shuffled(range(k))[:active]

        raw = np.array([rng.random() for _ in selected])
        total = float(raw.sum())
        normalized = raw / total if total > 0 else np.full(active, 1.0 / active)

        weights = np.zeros(k)
        weights[selected] = config.min_weight + normalized * (1.0 - active * config.min_weight)
        return weights

    def evaluate(
        self,
        weights: np.ndarray,
        means: np.ndarray,
        covariance: np.ndarray,
        band: TargetBand,
    ) -> CandidatePortfolio:
        expected_return = statistics.dot(weights, means)
        variance = statistics.quadratic_form(weights, covariance)
        expected_risk = float(np.sqrt(max(variance, 0.0)))
        return CandidatePortfolio(
            weights=weights,
            expected_return=expected_return,
            expected_risk=expected_risk,
            sharpe=sharpe_ratio(expected_return, expected_risk),
            target_gap=band.distance(expected_return),
        )

    def allocate(
        self,
        candidates: Sequence[CandidateMarket],
        weights: np.ndarray,
        min_weight: float,
    ) -> list[PortfolioItem]:
        """Zip weights onto candidates, drop those below min_weight, sort descending.

        When every weight is below min_weight (equal weight over a pool
        larger than 1 / min_weight) the non-zero weights are kept instead.
        """
        pairs = list(zip(candidates, (float(w) for w in weights)))
        kept = [(c, w) for c, w in pairs if w >= min_weight]
        if not kept:
            kept = [(c, w) for c, w in pairs if w > 0.0]
        kept.sort(key=lambda cw: cw[1], reverse=True)
        return [
            PortfolioItem(
                unique_key=c.unique_key,
                market=c.market,
                weight=min(w, 1.0),
                mean_apy=c.mean_apy,
                symbol_display=c.market.display_symbol,
            )
            for c, w in kept
        ]


def compare_in_band(left: CandidatePortfolio, right: CandidatePortfolio) -> float:
    """Negative when left is better: higher return, else (within 0.1 pp) lower risk."""
    return_delta = right.expected_return - left.expected_return
    if abs(return_delta) > _MATERIAL_DIFF:
        return return_delta
    return left.expected_risk - right.expected_risk


def compare_fallback(left: CandidatePortfolio, right: CandidatePortfolio) -> float:
    """Negative when left is better: closer to band, then higher Sharpe, then lower risk."""
    gap_delta = left.target_gap - right.target_gap
    if abs(gap_delta) > _MATERIAL_DIFF:
        return gap_delta
    sharpe_delta = right.sharpe - left.sharpe
    if abs(sharpe_delta) > _MATERIAL_DIFF:
        return sharpe_delta
    return left.expected_risk - right.expected_risk


# ─────────────────────────────────────────────────────────────────────────── #
# Orchestration                                                                #
# ─────────────────────────────────────────────────────────────────────────── #


class OptimizationService:
    """Runs eligibility → covariance → search → metrics for a market universe.

    Collaborating services can be injected for testing; defaults are the
    stateless production implementations.
    """

    def __init__(
        self,
        eligibility: EligibilityService | None = None,
        search: PortfolioSearchService | None = None,
        analytics: PortfolioAnalyticsService | None = None,
    ) -> None:
        self._eligibility = eligibility or EligibilityService()
        self._search = search or PortfolioSearchService()
        self._analytics = analytics or PortfolioAnalyticsService()

    def optimize(
        self,
        markets: Sequence[MarketRecord],
        eligibility_config: EligibilityConfig | None = None,
        search_config: SearchConfig | None = None,
        is_excluded: MarketPredicate | None = None,
        average_window_days: int = DEFAULT_AVERAGE_WINDOW_DAYS,
    ) -> PortfolioMetrics | None:
        """Select the optimized portfolio for a market universe.

        Returns:
            PortfolioMetrics, or None when no market is eligible
            (optimization not possible; not an error).
        """
        search_config = search_config or SearchConfig()
        band = search_config.target_band

        candidates = self._eligibility.select_candidates(
            markets, eligibility_config, band, is_excluded
        )
        if not candidates:
            logger.info("Optimization unavailable: no eligible markets among %d", len(markets))
            return None

        covariance = statistics.covariance_matrix([c.trimmed_series for c in candidates])
        result = self._search.search(candidates, covariance, search_config)
        items = self._search.allocate(
            candidates, result.portfolio.weights, search_config.min_weight
        )

        retained = np.array([item.weight for item in items])
        retained = retained / retained.sum()
        hhi = float(np.sum(retained**2))
        best = result.portfolio

        partial = PortfolioMetrics(
            current_apy=self._analytics.weighted_current_apy(items),
            average_apy=self._analytics.weighted_average_apy(items, average_window_days),
            average_window_days=average_window_days,
            expected_return=best.expected_return,
            expected_risk=best.expected_risk,
            sharpe=best.sharpe,
            items=items,
            eligible_markets=len(candidates),
            target_apy_min=band.min_apy,
            target_apy_max=band.max_apy,
            selection=result.selection,
            hhi=hhi,
            effective_n=1.0 / hhi,
            explanation="",
        )
        return partial.model_copy(update={"explanation": _generate_explanation(partial, band)})


def _generate_explanation(metrics: PortfolioMetrics, band: TargetBand) -> str:
    """Plain-language summary with concrete numbers."""
    parts: list[str] = []

    labels = [f"{item.label} {item.weight * 100:.1f}%" for item in metrics.items[:5]]
    if labels:
        parts.append(f"Top holdings: {', '.join(labels)}.")

    parts.append(
        f"Expected APY {metrics.expected_return * 100:.2f}%, "
        f"APY volatility {metrics.expected_risk * 100:.2f}%, "
        f"return/risk ratio {metrics.sharpe:.2f}."
    )

    band_label = f"{band.min_apy * 100:.2f}%–{band.max_apy * 100:.2f}%"
    if metrics.in_band:
        parts.append(f"Inside the {band_label} target band.")
    else:
        position = band.position(metrics.expected_return).value
        parts.append(
            f"No sampled allocation reached the {band_label} target band; "
            f"the closest result is {position} it."
        )
    if metrics.selection == SelectionSource.EQUAL_WEIGHT:
        parts.append("The equal-weight baseline beat every sampled allocation.")

    parts.append(
        f"HHI {metrics.hhi:.4f}, effective N {metrics.effective_n:.1f} "
        f"from {metrics.eligible_markets} eligible markets."
    )
    return " ".join(parts)
