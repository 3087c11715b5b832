"""Shared utilities (paths, run logging)."""

from .runlog import close_logger, setup_logger
from .paths import ensure_dir, make_run_dir, project_root_from_config_path, resolve_input, resolve_path

__all__ = [
    "close_logger",
    "ensure_dir",
    "make_run_dir",
    "project_root_from_config_path",
    "resolve_input",
    "resolve_path",
    "setup_logger",
]
