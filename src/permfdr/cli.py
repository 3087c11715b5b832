from __future__ import annotations

from pathlib import Path

import typer
import yaml
from pydantic import ValidationError as ConfigValidationError
from rich.console import Console

from permfdr.config import ProjectConfig, load_config
from permfdr.errors import PermFdrError
from permfdr.pipeline.adjust import feature_p_value, run_adjust

app = typer.Typer(no_args_is_help=True)
console = Console()


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]ERROR[/red] {type(exc).__name__}: {exc}")
    return typer.Exit(code=1)


def _load_config_or_exit(config_path: Path) -> ProjectConfig:
    try:
        return load_config(config_path)
    except (OSError, yaml.YAMLError, ConfigValidationError) as exc:
        raise _fail(exc) from exc


@app.command("run")
def run(
    config: str = typer.Option(..., "--config", "-c", help="Path to configs/project.yaml"),
    run_id: str | None = typer.Option(None, "--run-id", help="Run directory name (default: UTC timestamp)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo the run log to stderr."),
) -> None:
    """Estimate the permutation FDP curve and write the adjusted rejection threshold."""
    config_path = Path(config).resolve()
    cfg = _load_config_or_exit(config_path)
    try:
        outputs = run_adjust(cfg, config_path=config_path, run_id=run_id, echo_log=verbose)
    except PermFdrError as exc:
        raise _fail(exc) from exc

    result = outputs.result
    console.print(f"[green]OK[/green] run complete: {outputs.run_id}")
    console.print(
        f"Threshold: {result.threshold:.6g} "
        f"(FDR {cfg.inference.fdr_threshold:g}, {result.n_perms} permutations)"
    )
    console.print(f"Rejected: {result.n_rejected}/{result.sorted_p_values.size}")
    console.print(f"FDP curve: {outputs.fdp_curve_csv}")
    console.print(f"Features: {outputs.features_csv}")


@app.command("pvalue")
def pvalue(
    config: str = typer.Option(..., "--config", "-c", help="Path to configs/project.yaml"),
    feature: str = typer.Option(..., "--feature", "-f", help="Feature id (row of the intensity table)."),
) -> None:
    """Two-sample t-test p-value for one feature under the configured design."""
    config_path = Path(config).resolve()
    cfg = _load_config_or_exit(config_path)
    try:
        p = feature_p_value(cfg, config_path=config_path, feature=feature)
    except (PermFdrError, KeyError) as exc:
        raise _fail(exc) from exc
    console.print(f"{feature}: p={p:.6g}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
