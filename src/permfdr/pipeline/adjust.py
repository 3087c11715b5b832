from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import pandas as pd

from permfdr.config import ProjectConfig
from permfdr.io.tables import (
    TableSpec,
    load_design,
    load_intensity_table,
    load_observed_p_values,
    to_unit_matrix,
)
from permfdr.stats.design import CONTROL, TREATMENT
from permfdr.stats.permutation import PermutationFdrResult, run_permutation_fdr
from permfdr.stats.ttest import compute_p_value
from permfdr.utils.paths import (
    ensure_dir,
    make_run_dir,
    project_root_from_config_path,
    resolve_input,
    resolve_path,
)
from permfdr.utils.runlog import close_logger, setup_logger


@dataclass(frozen=True)
class LoadedInputs:
    intensities: pd.DataFrame  # features x samples
    design: np.ndarray
    observed_p_values: np.ndarray | None


@dataclass(frozen=True)
class AdjustRunOutputs:
    run_id: str
    run_dir: Path
    fdp_curve_csv: Path
    features_csv: Path
    run_config_json: Path
    log_path: Path
    result: PermutationFdrResult


def table_spec_from_config(config: ProjectConfig) -> TableSpec:
    return TableSpec(
        feature_col=config.columns.feature,
        sample_col=config.columns.sample,
        group_col=config.columns.group,
        p_value_col=config.columns.p_value,
        control_label=config.design.control_label,
        treatment_label=config.design.treatment_label,
    )


def load_inputs(config: ProjectConfig, *, config_path: Path) -> LoadedInputs:
    project_root = project_root_from_config_path(config_path)
    spec = table_spec_from_config(config)

    intensities_csv = resolve_input(project_root, config.paths.intensities_csv, what="Intensity table")
    design_csv = resolve_input(project_root, config.paths.design_csv, what="Design table")
    intensities = load_intensity_table(str(intensities_csv), spec)
    design = load_design(str(design_csv), spec, intensities.columns.tolist())

    observed = None
    if config.paths.observed_p_values_csv:
        observed = load_observed_p_values(
            str(resolve_input(project_root, config.paths.observed_p_values_csv, what="P-value table")),
            spec,
            intensities.index.tolist(),
        )
    return LoadedInputs(intensities=intensities, design=design, observed_p_values=observed)


def feature_p_value(config: ProjectConfig, *, config_path: Path, feature: str) -> float:
    inputs = load_inputs(config, config_path=config_path)
    if feature not in inputs.intensities.index:
        raise KeyError(f"Feature not found in intensity table: {feature!r}")
    return compute_p_value(inputs.intensities.loc[feature].to_numpy(dtype=float), inputs.design)


def run_adjust(
    config: ProjectConfig,
    *,
    config_path: Path,
    run_id: str | None = None,
    echo_log: bool = False,
) -> AdjustRunOutputs:
    project_root = project_root_from_config_path(config_path)
    results_dir = ensure_dir(resolve_path(project_root, config.paths.results_dir))

    started = datetime.now(timezone.utc)
    run_id = run_id or started.strftime("%Y%m%dT%H%M%SZ")
    run_dir = make_run_dir(results_dir, run_id)
    log_path = run_dir / "run.log"
    logger = setup_logger(log_path, "permfdr", echo=echo_log)

    try:
        inputs = load_inputs(config, config_path=config_path)
        nc = int(np.sum(inputs.design == CONTROL))
        nt = int(np.sum(inputs.design == TREATMENT))
        logger.info(
            "Loaded %d features x %d samples (nc=%d, nt=%d)",
            inputs.intensities.shape[0],
            inputs.intensities.shape[1],
            nc,
            nt,
        )

        observed = inputs.observed_p_values
        if observed is None:
            observed = np.array([], dtype=float)
        else:
            logger.info("Using observed p-values from %s", config.paths.observed_p_values_csv)

        result = run_permutation_fdr(
            observed,
            config.inference.fdr_threshold,
            inputs.design,
            to_unit_matrix(inputs.intensities),
            config.inference.permutations,
            nc,
            nt,
            seed=config.random_seed,
            n_jobs=config.inference.n_jobs,
            rounding=config.inference.balance_rounding,
            placement=config.inference.block_placement,
        )
        logger.info(
            "Adjusted threshold %.6g at FDR %.3g: %d of %d features rejected",
            result.threshold,
            config.inference.fdr_threshold,
            result.n_rejected,
            result.sorted_p_values.size,
        )

        fdp_curve_csv = run_dir / "fdp_curve.csv"
        result.to_frame().to_csv(fdp_curve_csv, index=False)

        features = pd.DataFrame(
            {
                "feature": inputs.intensities.index.astype(str),
                "p_value": result.p_values,
                "rejected": result.p_values <= result.threshold,
            }
        ).sort_values(["p_value", "feature"])
        features_csv = run_dir / "features.csv"
        features.to_csv(features_csv, index=False)

        run_config_json = run_dir / "run_config.json"
        payload = {
            "run_id": run_id,
            "started_utc": started.isoformat(),
            "finished_utc": datetime.now(timezone.utc).isoformat(),
            "config_path": str(config_path),
            "config": config.model_dump(),
            "n_features": int(result.sorted_p_values.size),
            "n_control": nc,
            "n_treatment": nt,
            "observed_p_values_supplied": inputs.observed_p_values is not None,
            "threshold": float(result.threshold),
            "best_rank": int(result.best_index + 1),
            "n_rejected": result.n_rejected,
        }
        run_config_json.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    except Exception:
        logger.exception("Run %s failed", run_id)
        raise
    finally:
        close_logger(logger)

    return AdjustRunOutputs(
        run_id=run_id,
        run_dir=run_dir,
        fdp_curve_csv=fdp_curve_csv,
        features_csv=features_csv,
        run_config_json=run_config_json,
        log_path=log_path,
        result=result,
    )
