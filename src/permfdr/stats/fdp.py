from __future__ import annotations

import logging

import numpy as np

from permfdr.errors import ValidationError

logger = logging.getLogger(__name__)

# Step added above the largest observed p-value when every rank passes.
ALL_PASS_MARGIN = 0.05


def count_hits(sorted_p_values: np.ndarray, threshold: float) -> int:
    """Number of p-values <= threshold. Input must be sorted ascending."""
    p = np.asarray(sorted_p_values, dtype=float)
    return int(np.searchsorted(p, threshold, side="right"))


def estimate_fdp(sorted_observed: np.ndarray, null_p_values: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Permutation estimate of the false discovery proportion at every observed rank.

    Returns (mean_null_hits, fdp): for rank i (1-based) the threshold is the i-th smallest
    observed p-value, mean_null_hits is the number of null p-values at or below it averaged
    over permutation rows, and fdp = mean_null_hits / i.
    """
    observed = np.asarray(sorted_observed, dtype=float)
    null = np.asarray(null_p_values, dtype=float)
    if observed.ndim != 1:
        raise ValidationError("sorted_observed must be 1D")
    if null.ndim != 2:
        raise ValidationError("null_p_values must be 2D (permutations x features)")
    if null.shape[0] == 0:
        raise ValidationError("null_p_values has no permutation rows")

    hits = np.zeros(observed.size, dtype=float)
    for row in null:
        hits += np.searchsorted(row, observed, side="right")
    mean_hits = hits / null.shape[0]

    ranks = np.arange(1, observed.size + 1, dtype=float)
    return mean_hits, mean_hits / ranks


def highest_rank_at_or_below(fdp: np.ndarray, threshold: float) -> int:
    """0-based index of the last FDP value <= threshold, or -1 if none qualifies."""
    idx = np.flatnonzero(np.asarray(fdp, dtype=float) <= threshold)
    if idx.size == 0:
        return -1
    return int(idx[-1])


def select_threshold(sorted_observed: np.ndarray, fdp: np.ndarray, threshold: float) -> float:
    p = np.asarray(sorted_observed, dtype=float)
    if p.size == 0:
        raise ValidationError("No observed p-values to threshold")
    if p.size != np.asarray(fdp).size:
        raise ValidationError("FDP curve and observed p-values differ in length")

    best = highest_rank_at_or_below(fdp, threshold)

    if best < 0:
        logger.info("No rank reaches FDP <= %s; rejecting nothing", threshold)
        return float(p[0] / 2)

    if best == p.size - 1:
        worst = float(p[-1])
        logger.info("All %d ranks reach FDP <= %s", p.size, threshold)
        if worst + ALL_PASS_MARGIN <= 1:
            return worst + ALL_PASS_MARGIN
        return (worst + 1) / 2

    logger.info("Highest qualifying rank: %d of %d", best + 1, p.size)
    return float((p[best] + p[best + 1]) / 2)
