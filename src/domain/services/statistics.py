"""Statistics kernel for yield series.

Population statistics (divide by N, not N − 1): each observed period is
treated as the full population of outcomes, not a sample of a larger one.

Inputs must be non-empty; covariance inputs must share a length.  Callers
align series before calling in, so a violation here is a programming error
and raises ValueError rather than being truncated.

No smoothing or outlier handling is applied.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean."""
    arr = _as_array(values)
    return float(np.mean(arr))


def population_variance(values: Sequence[float]) -> float:
    """Mean squared deviation from the mean: (1/N) · Σ (xᵢ − x̄)²."""
    arr = _as_array(values)
    return float(np.mean((arr - arr.mean()) ** 2))


def standard_deviation(values: Sequence[float]) -> float:
    return float(np.sqrt(population_variance(values)))


def covariance(left: Sequence[float], right: Sequence[float]) -> float:
    """Population covariance: (1/N) · Σ (aᵢ − ā)(bᵢ − b̄).

    Raises:
        ValueError: If either input is empty or the lengths differ.
    """
    a = _as_array(left)
    b = _as_array(right)
    if a.shape != b.shape:
        raise ValueError(
            f"covariance requires equal-length series, got {a.size} and {b.size}"
        )
    return float(np.mean((a - a.mean()) * (b - b.mean())))


def covariance_matrix(series: Sequence[Sequence[float]]) -> np.ndarray:
    """K×K population covariance matrix of K equal-length series.

    matrix[i, j] = covariance(series[i], series[j]); the diagonal holds each
    series' own variance.  No shrinkage or regularisation.

    Raises:
        ValueError: If no series are given or their lengths differ.
    """
    if len(series) == 0:
        raise ValueError("covariance_matrix requires at least one series")
    lengths = {len(s) for s in series}
    if len(lengths) != 1:
        raise ValueError(
            f"covariance_matrix requires equal-length series, got lengths {sorted(lengths)}"
        )
    data = np.array([_as_array(s) for s in series])   # shape (K, N)
    centered = data - data.mean(axis=1, keepdims=True)
    matrix = centered @ centered.T / data.shape[1]
    return (matrix + matrix.T) / 2.0


def dot(left: Sequence[float], right: Sequence[float]) -> float:
    a = np.asarray(left, dtype=float)
    b = np.asarray(right, dtype=float)
    if a.shape != b.shape:
        raise ValueError(f"dot requires equal-length vectors, got {a.size} and {b.size}")
    return float(a @ b)


def quadratic_form(weights: Sequence[float], matrix: np.ndarray) -> float:
    """wᵀ M w: portfolio variance when M is a covariance matrix."""
    w = np.asarray(weights, dtype=float)
    m = np.asarray(matrix, dtype=float)
    if m.shape != (w.size, w.size):
        raise ValueError(
            f"quadratic_form requires a {w.size}×{w.size} matrix, got shape {m.shape}"
        )
    return float(w @ m @ w)


def _as_array(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.ndim != 1 or arr.size == 0:
        raise ValueError("statistics require a non-empty one-dimensional sequence")
    return arr
