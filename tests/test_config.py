from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from permfdr.config import load_config


def test_load_config_defaults(tmp_path: Path) -> None:
    cfg_path = tmp_path / "project.yaml"
    cfg_path.write_text(
        "paths:\n  intensities_csv: data/ints.csv\n  design_csv: data/design.csv\n",
        encoding="utf-8",
    )
    cfg = load_config(cfg_path)
    assert cfg.random_seed == 42
    assert cfg.inference.permutations == 1000
    assert cfg.inference.fdr_threshold == 0.05
    assert cfg.inference.balance_rounding == "floor"
    assert cfg.inference.block_placement == "concatenate"
    assert cfg.design.control_label == "control"
    assert cfg.paths.observed_p_values_csv is None


def test_repo_example_config_loads() -> None:
    project_root = Path(__file__).resolve().parents[1]
    cfg = load_config(project_root / "configs" / "project.yaml")
    assert cfg.columns.feature == "protein"
    assert cfg.inference.permutations >= 1


@pytest.mark.parametrize(
    "inference",
    [
        "  permutations: 0\n",
        "  fdr_threshold: 1.5\n",
        "  balance_rounding: ceil\n",
        "  block_placement: interleave\n",
        "  n_jobs: 0\n",
    ],
)
def test_load_config_rejects_out_of_range_inference(tmp_path: Path, inference: str) -> None:
    cfg_path = tmp_path / "project.yaml"
    cfg_path.write_text(
        "inference:\n" + inference + "paths:\n  intensities_csv: a.csv\n  design_csv: b.csv\n",
        encoding="utf-8",
    )
    with pytest.raises(PydanticValidationError):
        load_config(cfg_path)
