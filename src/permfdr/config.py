from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class ColumnsConfig(BaseModel):
    feature: str = "feature"
    sample: str = "sample"
    group: str = "group"
    p_value: str = "p_value"


class DesignConfig(BaseModel):
    control_label: str = "control"
    treatment_label: str = "treatment"


class InferenceConfig(BaseModel):
    permutations: int = Field(default=1000, ge=1)
    fdr_threshold: float = Field(default=0.05, ge=0.0, le=1.0)
    balance_rounding: Literal["floor", "nearest"] = "floor"
    block_placement: Literal["concatenate", "by_design"] = "concatenate"
    n_jobs: int = Field(default=1, ge=1)


class PathsConfig(BaseModel):
    intensities_csv: str
    design_csv: str
    observed_p_values_csv: str | None = None
    results_dir: str = "results"


class ProjectConfig(BaseModel):
    random_seed: int = 42
    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    design: DesignConfig = Field(default_factory=DesignConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    paths: PathsConfig


def load_config(path: str | Path) -> ProjectConfig:
    config_path = Path(path)
    data: dict[str, Any] = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    return ProjectConfig.model_validate(data)
