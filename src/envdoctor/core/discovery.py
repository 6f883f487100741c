"""
Workspace discovery.

Finds the apps of a workspace from the configured glob patterns and reads
their env files. A workspace without matching app directories is treated
as a single project rooted at the workspace root.
"""

import os
from pathlib import Path
from typing import List, Optional

from .config import Config
from .lexer import EnvFile, parse_env_file
from .types import AppInfo


DEFAULT_PRUNE_DIRS = {
    ".git",
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    "dist",
    "build",
}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


def make_app(path: Path, config: Config, name: Optional[str] = None) -> AppInfo:
    """Build the descriptor for an app directory."""
    return AppInfo(
        name=name or path.name or "root",
        path=path,
        env_example_path=path / config.project.app_env_example,
        env_local_path=path / config.project.app_env_local,
    )


def root_app(root_dir, config: Config) -> AppInfo:
    """Descriptor for a single-project workspace."""
    root = Path(root_dir)
    return AppInfo(
        name=root.resolve().name or "root",
        path=root,
        env_example_path=root / config.project.root_env_example,
        env_local_path=root / config.project.root_env_local,
    )


def has_env_example(app: AppInfo) -> bool:
    return app.env_example_path.is_file()


def scan_workspaces(config: Config, root_dir: str = ".") -> List[AppInfo]:
    """
    Find app directories matching the workspace patterns.

    Environment:
        ENVDOCTOR_SINGLE_PROJECT=1 skips pattern matching

    Returns:
        Apps sorted by name; the root app when nothing matches
    """
    root = Path(root_dir)
    apps: dict[str, AppInfo] = {}

    if not _env_bool("ENVDOCTOR_SINGLE_PROJECT", False):
        for pattern in config.project.workspace_patterns:
            for path in root.glob(pattern):
                if not path.is_dir():
                    continue
                if DEFAULT_PRUNE_DIRS.intersection(path.relative_to(root).parts):
                    continue
                apps.setdefault(str(path), make_app(path, config))

    if not apps:
        return [root_app(root_dir, config)]

    return sorted(apps.values(), key=lambda app: app.name)


def find_workspace(name: str, config: Config, root_dir: str = ".") -> Optional[AppInfo]:
    """Find an app by directory name or path relative to the root."""
    root = Path(root_dir)
    for app in scan_workspaces(config, root_dir):
        if app.name == name:
            return app
        try:
            if str(app.path.relative_to(root)) == name:
                return app
        except ValueError:
            continue
    return None


def read_env_file(path) -> EnvFile:
    """Read an actual env file. A missing file is empty."""
    try:
        with open(path, "r", newline="") as f:
            content = f.read()
    except FileNotFoundError:
        content = ""
    return parse_env_file(content)


def detect_current_workspace(config: Config, root_dir: str = ".", cwd=None) -> Optional[AppInfo]:
    """The app whose directory contains cwd, if cwd is inside one."""
    current = Path(cwd or os.getcwd()).resolve()
    root = Path(root_dir).resolve()
    for app in scan_workspaces(config, root_dir):
        app_path = Path(app.path).resolve()
        if app_path == root:
            continue
        if current == app_path or app_path in current.parents:
            return app
    return None
