from __future__ import annotations

import warnings
from typing import Callable, Sequence

import numpy as np
from scipy import stats

from permfdr.errors import DegenerateInputError
from permfdr.stats.design import group_by_design

PValueTest = Callable[[np.ndarray, np.ndarray], float]


def two_sample_t_test(a: np.ndarray, b: np.ndarray) -> float:
    """Two-sided pooled-variance Student's t-test.

    Raises DegenerateInputError instead of returning NaN when the statistic is undefined.
    """
    x = np.asarray(a, dtype=float).ravel()
    y = np.asarray(b, dtype=float).ravel()
    if x.size < 2 or y.size < 2:
        raise DegenerateInputError(f"Each group needs at least 2 values (got {x.size} and {y.size})")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise DegenerateInputError("Measurements must be finite")

    if np.ptp(x) == 0.0 and np.ptp(y) == 0.0:
        raise DegenerateInputError("Zero within-group variance: t statistic is undefined")

    with warnings.catch_warnings():
        # scipy flags near-constant groups; one constant group still gives a finite t.
        warnings.simplefilter("ignore", RuntimeWarning)
        res = stats.ttest_ind(x, y, equal_var=True)
    p = float(res.pvalue)
    if not np.isfinite(p):
        raise DegenerateInputError("t-test returned a non-finite p-value")
    return min(max(p, 0.0), 1.0)


def compute_p_value(
    measurements: Sequence[float] | np.ndarray,
    design: Sequence[float] | np.ndarray,
    *,
    test: PValueTest = two_sample_t_test,
) -> float:
    """P-value for one feature: group by design (1=control, 2=treatment) and test."""
    control, treatment = group_by_design(measurements, design)
    return float(test(control, treatment))
