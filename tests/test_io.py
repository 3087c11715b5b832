from pathlib import Path

import numpy as np
import pytest

from permfdr.errors import ValidationError
from permfdr.io.tables import (
    TableSpec,
    load_design,
    load_intensity_table,
    load_observed_p_values,
    to_unit_matrix,
)

SPEC = TableSpec(
    feature_col="protein",
    sample_col="sample",
    group_col="group",
    p_value_col="p_value",
    control_label="ctrl",
    treatment_label="trt",
)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_intensity_table_is_transposed_to_units(tmp_path: Path) -> None:
    path = _write(tmp_path / "ints.csv", "protein,A,B,C\nP1,1,2,3\nP2,4,5,6\n")
    df = load_intensity_table(str(path), SPEC)
    assert df.index.tolist() == ["P1", "P2"]
    assert df.columns.tolist() == ["A", "B", "C"]
    X = to_unit_matrix(df)
    assert X.shape == (3, 2)
    assert X[:, 0].tolist() == [1.0, 2.0, 3.0]


def test_intensity_table_errors(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="feature column"):
        load_intensity_table(str(_write(tmp_path / "a.csv", "gene,A\nP1,1\n")), SPEC)
    with pytest.raises(ValidationError, match="Duplicate"):
        load_intensity_table(str(_write(tmp_path / "b.csv", "protein,A\nP1,1\nP1,2\n")), SPEC)
    with pytest.raises(ValidationError, match="non-numeric"):
        load_intensity_table(str(_write(tmp_path / "c.csv", "protein,A\nP1,x\n")), SPEC)


def test_design_follows_sample_order(tmp_path: Path) -> None:
    path = _write(tmp_path / "design.csv", "sample,group\nB,trt\nA,ctrl\nC, ctrl\n")
    design = load_design(str(path), SPEC, ["A", "B", "C"])
    assert design.tolist() == [1, 2, 1]


def test_design_errors(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="Unknown group labels"):
        load_design(str(_write(tmp_path / "a.csv", "sample,group\nA,ctrl\nB,other\n")), SPEC, ["A", "B"])
    with pytest.raises(ValidationError, match="without a design entry"):
        load_design(str(_write(tmp_path / "b.csv", "sample,group\nA,ctrl\n")), SPEC, ["A", "B"])
    with pytest.raises(ValidationError, match="missing required columns"):
        load_design(str(_write(tmp_path / "c.csv", "sample,condition\nA,ctrl\n")), SPEC, ["A"])


def test_observed_p_values_align_to_features(tmp_path: Path) -> None:
    path = _write(tmp_path / "p.csv", "protein,p_value\nP2,0.5\nP1,0.01\n")
    p = load_observed_p_values(str(path), SPEC, ["P1", "P2"])
    assert np.allclose(p, [0.01, 0.5])
    with pytest.raises(ValidationError, match="without an observed p-value"):
        load_observed_p_values(str(path), SPEC, ["P1", "P3"])


def test_observed_p_values_must_be_numeric(tmp_path: Path) -> None:
    path = _write(tmp_path / "p.csv", "protein,p_value\nP1,0.01\nP2,n.s.\n")
    with pytest.raises(ValidationError, match="non-numeric"):
        load_observed_p_values(str(path), SPEC, ["P1", "P2"])
