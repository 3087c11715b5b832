from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from permfdr.errors import ConfigurationError, ValidationError
from permfdr.stats.design import (
    BLOCK_PLACEMENTS,
    CONTROL,
    ROUNDING_POLICIES,
    group_by_design,
    place_on_design,
    randomize_balanced_design,
    validate_design,
)
from permfdr.stats.fdp import estimate_fdp, highest_rank_at_or_below, select_threshold
from permfdr.stats.ttest import PValueTest, two_sample_t_test

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermutationFdrResult:
    threshold: float
    fdr_threshold: float
    p_values: np.ndarray  # observed, in feature order
    sorted_p_values: np.ndarray
    null_p_values: np.ndarray  # (n_perms, n_features), rows sorted ascending
    mean_null_hits: np.ndarray
    fdp: np.ndarray
    best_index: int  # -1 when no rank qualifies

    @property
    def n_perms(self) -> int:
        return int(self.null_p_values.shape[0])

    @property
    def n_rejected(self) -> int:
        return int(np.sum(self.sorted_p_values <= self.threshold))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "rank": np.arange(1, self.sorted_p_values.size + 1),
                "p_value": self.sorted_p_values,
                "mean_null_hits": self.mean_null_hits,
                "fdp": self.fdp,
                "rejected": self.sorted_p_values <= self.threshold,
            }
        )


def _as_unit_matrix(intensities: Sequence[Sequence[float]] | np.ndarray, n_units: int) -> np.ndarray:
    try:
        X = np.asarray(intensities, dtype=float)
    except ValueError as exc:
        raise ValidationError(f"Intensity table is not rectangular: {exc}") from exc
    if X.ndim != 2:
        raise ValidationError(f"Intensity table must be 2D (units x features), got {X.ndim}D")
    if X.shape[0] != n_units:
        raise ValidationError(f"Intensity table has {X.shape[0]} units but the design has {n_units}")
    if X.shape[1] == 0:
        raise ValidationError("Intensity table has no features")
    return X


def _p_values_for_design(X: np.ndarray, design: np.ndarray, test: PValueTest) -> np.ndarray:
    out = np.empty(X.shape[1], dtype=float)
    for j in range(X.shape[1]):
        control, treatment = group_by_design(X[:, j], design)
        out[j] = test(control, treatment)
    return out


def _check_settings(
    threshold: float, n_perms: int, nc: int, nt: int, n_jobs: int, rounding: str, placement: str
) -> None:
    if n_perms < 1:
        raise ConfigurationError(f"n_perms must be >= 1 (got {n_perms})")
    if nc < 1 or nt < 1:
        raise ConfigurationError(f"nc and nt must be >= 1 (got nc={nc}, nt={nt})")
    if n_jobs < 1:
        raise ConfigurationError(f"n_jobs must be >= 1 (got {n_jobs})")
    if not (0.0 <= threshold <= 1.0):
        raise ConfigurationError(f"threshold must be in [0, 1] (got {threshold})")
    if rounding not in ROUNDING_POLICIES:
        raise ConfigurationError(f"rounding must be one of: {'|'.join(ROUNDING_POLICIES)}")
    if placement not in BLOCK_PLACEMENTS:
        raise ConfigurationError(f"placement must be one of: {'|'.join(BLOCK_PLACEMENTS)}")


def permutation_null_p_values(
    X: np.ndarray,
    design: np.ndarray,
    *,
    n_perms: int,
    nc: int,
    nt: int,
    seed: int | np.random.SeedSequence | None = None,
    n_jobs: int = 1,
    rounding: str = "floor",
    placement: str = "concatenate",
    test: PValueTest = two_sample_t_test,
) -> np.ndarray:
    """Null p-value table: one sorted row per balanced relabelling of the units.

    Each trial draws from its own generator spawned off `seed`, so the table is the same
    for a given seed whatever `n_jobs` is.
    """
    seeds = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    trial_seeds = seeds.spawn(n_perms)

    def _trial(trial_seed: np.random.SeedSequence) -> np.ndarray:
        rng = np.random.default_rng(trial_seed)
        perm_design = randomize_balanced_design(nc, nt, rng, rounding=rounding)
        if placement == "by_design":
            perm_design = place_on_design(perm_design, design)
        return np.sort(_p_values_for_design(X, perm_design, test))

    if n_jobs == 1:
        rows = [_trial(s) for s in trial_seeds]
    else:
        logger.debug("Running %d permutations on %d threads", n_perms, n_jobs)
        with ThreadPoolExecutor(max_workers=n_jobs) as pool:
            rows = list(pool.map(_trial, trial_seeds))
    return np.vstack(rows)


def run_permutation_fdr(
    exp_ps: Sequence[float] | np.ndarray,
    threshold: float,
    design: Sequence[float] | np.ndarray,
    intensities: Sequence[Sequence[float]] | np.ndarray,
    n_perms: int,
    nc: int,
    nt: int,
    *,
    seed: int | np.random.SeedSequence | None = None,
    n_jobs: int = 1,
    rounding: str = "floor",
    placement: str = "concatenate",
    test: PValueTest = two_sample_t_test,
) -> PermutationFdrResult:
    """Permutation-calibrated FDR threshold with its diagnostics.

    `intensities` is units x features. When `exp_ps` is empty the observed p-values are
    computed from the real design.
    Each randomized design is applied to the units as drawn (first block on the first nc
    units). `placement="by_design"` lays the blocks onto the real control and treatment
    positions instead, which requires the design to hold exactly nc controls.
    """
    _check_settings(threshold, n_perms, nc, nt, n_jobs, rounding, placement)

    labels = np.asarray(design).ravel()
    if labels.size != nc + nt:
        raise ValidationError(f"Design has {labels.size} units but nc + nt = {nc + nt}")
    labels = validate_design(labels)
    n_control = int(np.sum(labels == CONTROL))
    if placement == "by_design" and n_control != nc:
        raise ValidationError(
            f"Design has {n_control} control and {labels.size - n_control} treatment units "
            f"(expected nc={nc}, nt={nt})"
        )

    X = _as_unit_matrix(intensities, labels.size)

    observed = np.asarray(exp_ps, dtype=float).ravel()
    if observed.size == 0:
        observed = _p_values_for_design(X, labels, test)
    elif observed.size != X.shape[1]:
        raise ValidationError(f"Got {observed.size} p-values for {X.shape[1]} features")
    elif np.any(~np.isfinite(observed)) or np.any((observed < 0) | (observed > 1)):
        raise ValidationError("p-values must be finite and in [0, 1]")
    feature_p = observed.copy()
    observed = np.sort(observed)

    logger.info(
        "Permutation FDR: %d features, %d control / %d treatment units, %d permutations",
        X.shape[1],
        nc,
        nt,
        n_perms,
    )
    null = permutation_null_p_values(
        X,
        labels,
        n_perms=n_perms,
        nc=nc,
        nt=nt,
        seed=seed,
        n_jobs=n_jobs,
        rounding=rounding,
        placement=placement,
        test=test,
    )

    mean_hits, fdp = estimate_fdp(observed, null)
    new_threshold = select_threshold(observed, fdp, threshold)
    return PermutationFdrResult(
        threshold=new_threshold,
        fdr_threshold=float(threshold),
        p_values=feature_p,
        sorted_p_values=observed,
        null_p_values=null,
        mean_null_hits=mean_hits,
        fdp=fdp,
        best_index=highest_rank_at_or_below(fdp, threshold),
    )


def adjust_fdr_threshold(
    exp_ps: Sequence[float] | np.ndarray,
    threshold: float,
    design: Sequence[float] | np.ndarray,
    intensities: Sequence[Sequence[float]] | np.ndarray,
    n_perms: int,
    nc: int,
    nt: int,
    *,
    seed: int | np.random.SeedSequence | None = None,
    n_jobs: int = 1,
    rounding: str = "floor",
    placement: str = "concatenate",
    test: PValueTest = two_sample_t_test,
) -> float:
    """Rejection threshold for p-values controlling the FDR at `threshold`.

    Like BH, the threshold is corrected rather than the p-values themselves.
    """
    result = run_permutation_fdr(
        exp_ps,
        threshold,
        design,
        intensities,
        n_perms,
        nc,
        nt,
        seed=seed,
        n_jobs=n_jobs,
        rounding=rounding,
        placement=placement,
        test=test,
    )
    return result.threshold
