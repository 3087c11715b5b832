from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from permfdr.errors import ValidationError
from permfdr.stats.design import CONTROL, TREATMENT


@dataclass(frozen=True)
class TableSpec:
    feature_col: str
    sample_col: str
    group_col: str
    p_value_col: str
    control_label: str
    treatment_label: str


def load_intensity_table(path: str, spec: TableSpec) -> pd.DataFrame:
    """Read a features x samples intensity CSV; the feature id column becomes the index."""
    df = pd.read_csv(path, dtype={spec.feature_col: str})
    if spec.feature_col not in df.columns:
        raise ValidationError(f"Intensity table is missing the feature column: {spec.feature_col!r}")

    df = df.set_index(spec.feature_col)
    df.index = df.index.astype(str)
    if df.index.has_duplicates:
        dupes = df.index[df.index.duplicated()].unique().tolist()
        raise ValidationError(f"Duplicate feature ids in intensity table: {dupes[:5]}")
    if df.shape[1] == 0:
        raise ValidationError("Intensity table has no sample columns")

    try:
        df = df.astype(float)
    except ValueError as exc:
        raise ValidationError(f"Intensity table has non-numeric values: {exc}") from exc
    df.columns = df.columns.astype(str)
    return df


def to_unit_matrix(intensities: pd.DataFrame) -> np.ndarray:
    """features x samples table -> units x features array."""
    return intensities.to_numpy(dtype=float).T.copy()


def load_design(path: str, spec: TableSpec, samples: list[str]) -> np.ndarray:
    """Design vector (1=control, 2=treatment) ordered like `samples`."""
    df = pd.read_csv(path, dtype=str)
    missing_cols = [c for c in [spec.sample_col, spec.group_col] if c not in df.columns]
    if missing_cols:
        raise ValidationError(f"Design table is missing required columns: {missing_cols}")

    df = df[[spec.sample_col, spec.group_col]].dropna().copy()
    df[spec.sample_col] = df[spec.sample_col].str.strip()
    df[spec.group_col] = df[spec.group_col].str.strip()
    if df[spec.sample_col].duplicated().any():
        raise ValidationError("Design table lists a sample more than once")

    label_map = {spec.control_label: CONTROL, spec.treatment_label: TREATMENT}
    unknown = sorted(set(df[spec.group_col]) - set(label_map))
    if unknown:
        raise ValidationError(
            f"Unknown group labels {unknown}; expected {spec.control_label!r} or {spec.treatment_label!r}"
        )

    groups = df.set_index(spec.sample_col)[spec.group_col]
    missing = [s for s in samples if s not in groups.index]
    if missing:
        raise ValidationError(f"Samples without a design entry: {missing[:5]}")
    return np.array([label_map[groups[s]] for s in samples], dtype=int)


def load_observed_p_values(path: str, spec: TableSpec, features: list[str]) -> np.ndarray:
    """Pre-computed p-values aligned to `features`."""
    df = pd.read_csv(path, dtype={spec.feature_col: str})
    missing_cols = [c for c in [spec.feature_col, spec.p_value_col] if c not in df.columns]
    if missing_cols:
        raise ValidationError(f"P-value table is missing required columns: {missing_cols}")

    try:
        p = df.set_index(spec.feature_col)[spec.p_value_col].astype(float)
    except ValueError as exc:
        raise ValidationError(f"P-value table has non-numeric values: {exc}") from exc
    if p.index.has_duplicates:
        raise ValidationError("P-value table lists a feature more than once")
    missing = [f for f in features if f not in p.index]
    if missing:
        raise ValidationError(f"Features without an observed p-value: {missing[:5]}")
    return p.loc[features].to_numpy(dtype=float)
