from __future__ import annotations

from typing import Sequence

import numpy as np

from permfdr.errors import ConfigurationError, ValidationError

CONTROL = 1
TREATMENT = 2

ROUNDING_POLICIES = ("floor", "nearest")
BLOCK_PLACEMENTS = ("concatenate", "by_design")


def validate_design(design: Sequence[float] | np.ndarray) -> np.ndarray:
    arr = np.asarray(design)
    if arr.ndim != 1:
        raise ValidationError("design must be 1D")
    if arr.size and not np.issubdtype(arr.dtype, np.number):
        raise ValidationError(f"Design symbols must be {CONTROL} or {TREATMENT}")
    bad = ~np.isin(arr, [CONTROL, TREATMENT])
    if np.any(bad):
        first = int(np.flatnonzero(bad)[0])
        raise ValidationError(
            f"Design symbol at position {first} is {arr[first]!r}; expected {CONTROL} or {TREATMENT}"
        )
    return arr.astype(int)


def group_by_design(
    measurements: Sequence[float] | np.ndarray, design: Sequence[float] | np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Split measurements into (control, treatment), keeping order within each group."""
    values = np.asarray(measurements, dtype=float).ravel()
    labels = np.asarray(design).ravel()
    if values.size != labels.size:
        raise ValidationError(
            f"Design and measurements differ in length ({labels.size} vs {values.size})"
        )
    labels = validate_design(labels)
    return values[labels == CONTROL], values[labels == TREATMENT]


def balanced_control_count(nc: int, nt: int, *, rounding: str = "floor") -> int:
    """Number of control-labelled slots in the first (control-sized) block."""
    if nc < 1 or nt < 1:
        raise ConfigurationError(f"nc and nt must be >= 1 (got nc={nc}, nt={nt})")
    if rounding == "floor":
        # Integer division, as the published procedure computes it.
        return (nc * nc) // (nc + nt)
    if rounding == "nearest":
        # Half away from zero; Python's round() would round halves to even.
        return int(np.floor(nc * nc / (nc + nt) + 0.5))
    raise ConfigurationError(f"rounding must be one of: {'|'.join(ROUNDING_POLICIES)}")


def randomize_balanced_design(
    nc: int, nt: int, rng: np.random.Generator, *, rounding: str = "floor"
) -> np.ndarray:
    """Draw a relabelling with nc controls and nt treatments, shuffled within two blocks.

    The first block (size nc) gets k controls and nc - k treatments, the second block
    (size nt) gets the remaining nc - k controls and nt - (nc - k) treatments. Each block is
    shuffled with its own child generator, then the blocks are concatenated.
    """
    k = balanced_control_count(nc, nt, rounding=rounding)
    swapped = nc - k

    first = np.array([CONTROL] * k + [TREATMENT] * swapped, dtype=int)
    second = np.array([CONTROL] * swapped + [TREATMENT] * (nt - swapped), dtype=int)

    rng_first, rng_second = rng.spawn(2)
    rng_first.shuffle(first)
    rng_second.shuffle(second)
    return np.concatenate([first, second])


def place_on_design(randomized: np.ndarray, design: np.ndarray) -> np.ndarray:
    """Lay the two blocks of a randomized design onto the real control/treatment positions.

    Opt-in alternative to using the concatenated blocks directly; the real design must hold
    exactly as many controls as the first block is long.
    """
    labels = validate_design(design)
    control_idx = np.flatnonzero(labels == CONTROL)
    treatment_idx = np.flatnonzero(labels == TREATMENT)
    if randomized.size != labels.size:
        raise ValidationError(
            f"Randomized design has {randomized.size} labels, real design has {labels.size}"
        )

    out = np.empty(labels.size, dtype=int)
    out[control_idx] = randomized[: control_idx.size]
    out[treatment_idx] = randomized[control_idx.size :]
    return out
