"""Permutation-calibrated FDR thresholding (design randomization, null tables, FDP)."""

from .design import CONTROL, TREATMENT, group_by_design, randomize_balanced_design
from .fdp import count_hits, estimate_fdp, select_threshold
from .permutation import PermutationFdrResult, adjust_fdr_threshold, run_permutation_fdr
from .ttest import compute_p_value, two_sample_t_test

__all__ = [
    "CONTROL",
    "TREATMENT",
    "PermutationFdrResult",
    "adjust_fdr_threshold",
    "compute_p_value",
    "count_hits",
    "estimate_fdp",
    "group_by_design",
    "randomize_balanced_design",
    "run_permutation_fdr",
    "select_threshold",
    "two_sample_t_test",
]
