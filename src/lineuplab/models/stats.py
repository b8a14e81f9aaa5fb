"""Small statistics helpers shared by the scorers.

Quantiles use the nearest-rank rule (rank = ceil(q * N), at least 1) so a
floor is always an observed value. Win distributions treat games as
independent Bernoulli trials (Poisson-binomial).
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy.stats import pearsonr

from lineuplab.config import MIN_CORRELATION_SAMPLES


def nearest_rank_quantile(values: Sequence[float], q: float) -> float:
    """Nearest-rank quantile of unweighted values; 0.0 for no values."""
    if len(values) == 0:
        return 0.0
    ordered = np.sort(np.asarray(values, dtype=float))
    rank = int(math.ceil(q * len(ordered)))
    rank = min(max(rank, 1), len(ordered))
    return float(ordered[rank - 1])


def normalize_weights(weights: Sequence[Optional[float]]) -> List[float]:
    """Scale weights to sum to 1.

    Missing, negative or non-finite weights count as 0. When nothing
    positive is left the weights become uniform.
    """
    cleaned = np.array(
        [w if w is not None and math.isfinite(w) and w > 0 else 0.0 for w in weights],
        dtype=float,
    )
    if cleaned.size == 0:
        return []
    total = cleaned.sum()
    if total <= 0:
        return [1.0 / cleaned.size] * cleaned.size
    return (cleaned / total).tolist()


def weighted_std(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted population standard deviation around the weighted mean.

    Falls back to the unweighted standard deviation when weights sum to 0.
    """
    if len(values) == 0:
        return 0.0
    x = np.asarray(values, dtype=float)
    w = np.asarray(weights, dtype=float)
    if w.sum() <= 0:
        return float(np.std(x))
    mean = np.average(x, weights=w)
    variance = np.average((x - mean) ** 2, weights=w)
    return float(math.sqrt(max(variance, 0.0)))


def win_distribution(probabilities: Sequence[float]) -> np.ndarray:
    """P(exactly k wins) for k = 0..N over independent games."""
    distribution = np.zeros(len(probabilities) + 1)
    distribution[0] = 1.0
    for p in probabilities:
        p = min(max(float(p), 0.0), 1.0)
        shifted = np.concatenate(([0.0], distribution[:-1]))
        distribution = distribution * (1.0 - p) + shifted * p
    return distribution


def quantile_from_distribution(distribution: Sequence[float], q: float) -> float:
    """Smallest win count whose cumulative probability reaches q."""
    cumulative = 0.0
    for wins, mass in enumerate(distribution):
        cumulative += mass
        if cumulative >= q:
            return float(wins)
    return float(max(0, len(distribution) - 1))


def matchup_win_probability(probabilities: Sequence[float]) -> float:
    """P(winning more than half the games), with an exact tie counted half."""
    if len(probabilities) == 0:
        return 0.5
    distribution = win_distribution(probabilities)
    half = len(probabilities) / 2.0
    wins = np.arange(len(distribution))
    total = distribution[wins > half].sum() + 0.5 * distribution[wins == half].sum()
    return float(min(max(total, 0.0), 1.0))


def pearson_correlation(samples: Sequence[Tuple[float, float]]) -> Optional[float]:
    """Pearson r of (x, y) samples, or None when there is too little signal."""
    if len(samples) < MIN_CORRELATION_SAMPLES:
        return None
    data = np.asarray(samples, dtype=float)
    x, y = data[:, 0], data[:, 1]
    # Constant columns have no defined correlation
    if np.std(x) <= 1e-9 or np.std(y) <= 1e-9:
        return None
    r, _ = pearsonr(x, y)
    if np.isnan(r):
        return None
    return max(-1.0, min(1.0, float(r)))


__all__ = [
    "nearest_rank_quantile",
    "normalize_weights",
    "weighted_std",
    "win_distribution",
    "quantile_from_distribution",
    "matchup_win_probability",
    "pearson_correlation",
]
