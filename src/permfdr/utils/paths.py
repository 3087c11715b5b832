from __future__ import annotations

from pathlib import Path

from permfdr.errors import ValidationError


def project_root_from_config_path(config_path: Path) -> Path:
    # <root>/configs/project.yaml -> <root>
    if config_path.parent.name == "configs":
        return config_path.parent.parent.resolve()
    return config_path.parent.resolve()


def resolve_path(project_root: Path, path_str: str) -> Path:
    path = Path(path_str)
    return path if path.is_absolute() else (project_root / path).resolve()


def resolve_input(project_root: Path, path_str: str, *, what: str) -> Path:
    """Resolve an input table path and fail early if it does not exist."""
    path = resolve_path(project_root, path_str)
    if not path.is_file():
        raise ValidationError(f"{what} not found: {path}")
    return path


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def make_run_dir(results_dir: Path, run_id: str) -> Path:
    """Create `<results_dir>/<run_id>`; run ids are single directory names."""
    if not run_id or Path(run_id).name != run_id or run_id in {".", ".."}:
        raise ValidationError(f"Invalid run id: {run_id!r}")
    return ensure_dir(results_dir / run_id)
