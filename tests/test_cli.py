from pathlib import Path

from typer.testing import CliRunner

from permfdr.cli import app

REPO_ROOT = Path(__file__).resolve().parents[1]

runner = CliRunner()


def test_run_reports_missing_config(tmp_path: Path) -> None:
    result = runner.invoke(app, ["run", "--config", str(tmp_path / "absent.yaml")])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_run_reports_invalid_config_value(tmp_path: Path) -> None:
    cfg_path = tmp_path / "project.yaml"
    cfg_path.write_text(
        "inference:\n  permutations: 0\npaths:\n  intensities_csv: a.csv\n  design_csv: b.csv\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["pvalue", "--config", str(cfg_path), "--feature", "P01"])
    assert result.exit_code == 1
    assert "ERROR" in result.output


def test_pvalue_prints_feature_p_value() -> None:
    cfg_path = REPO_ROOT / "configs" / "project.yaml"
    result = runner.invoke(app, ["pvalue", "--config", str(cfg_path), "--feature", "P01"])
    assert result.exit_code == 0
    assert "P01: p=" in result.output


def test_run_reports_missing_input_table(tmp_path: Path) -> None:
    configs = tmp_path / "configs"
    configs.mkdir()
    cfg_path = configs / "project.yaml"
    cfg_path.write_text(
        "paths:\n  intensities_csv: data/none.csv\n  design_csv: data/none.csv\n  results_dir: results\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["run", "--config", str(cfg_path), "--run-id", "r1"])
    assert result.exit_code == 1
    assert "ERROR ValidationError" in result.output
