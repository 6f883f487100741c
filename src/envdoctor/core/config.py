"""
Configuration loading for envdoctor.

Configuration lives in an optional `.envdoctor.json` at the workspace
root. Every section is merged over the defaults below, so a config file
only needs to name what it changes.
"""

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError


CONFIG_FILENAMES = (".envdoctor.json", "envdoctor.json")


@dataclass
class ProjectConfig:
    """Where env files live."""
    root_env_example: str = ".env.local.example"
    root_env_local: str = ".env.local"
    app_env_example: str = ".env.local.example"
    app_env_local: str = ".env.local"
    workspace_patterns: List[str] = field(default_factory=lambda: ["apps/*", "packages/*"])
    # Directory inside each app that holds its source code
    source_dir: str = "src"


@dataclass
class ScanningConfig:
    """Schema filtering and source scanning for diagnose."""
    # Platform-provided variables that are never resolved or reported missing
    ignore_missing: List[str] = field(default_factory=list)
    # Schema variables never reported as unused
    ignore_unused: List[str] = field(default_factory=list)
    extensions: List[str] = field(default_factory=lambda: [
        ".js", ".ts", ".jsx", ".tsx", ".mjs", ".cjs", ".py",
    ])
    skip_dirs: List[str] = field(default_factory=lambda: [
        "node_modules", ".next", ".turbo", "dist", "build", "coverage",
        "__pycache__", "__snapshots__",
    ])


@dataclass
class CIConfig:
    """CI detection and CI-mode behaviour."""
    skip_env_var: str = "SKIP_ENV_DOCTOR"
    skip_directives: List[str] = field(default_factory=lambda: ["local-only", "prompt"])
    detection: Dict[str, List[str]] = field(default_factory=lambda: {
        "ci": ["CI", "CONTINUOUS_INTEGRATION"],
        "github": ["GITHUB_ACTIONS"],
        "vercel": ["VERCEL"],
        "netlify": ["NETLIFY"],
    })


@dataclass
class PluginRef:
    """A plugin to load: import path `module[:attr]` plus its options."""
    name: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Config:
    """Fully merged configuration."""
    project: ProjectConfig = field(default_factory=ProjectConfig)
    scanning: ScanningConfig = field(default_factory=ScanningConfig)
    ci: CIConfig = field(default_factory=CIConfig)
    plugins: List[PluginRef] = field(default_factory=list)
    deprecated: List[str] = field(default_factory=list)


@dataclass
class LoadConfigResult:
    config: Config
    filepath: Optional[Path] = None
    found: bool = False


def _merge_section(default, data: Any, section: str):
    if not isinstance(data, dict):
        raise ConfigError(f"'{section}' must be an object")

    known = {f.name for f in fields(default)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{section}': {', '.join(unknown)}")

    return replace(default, **data)


def _parse_plugins(data: Any) -> List[PluginRef]:
    if not isinstance(data, list):
        raise ConfigError("'plugins' must be a list")

    plugins = []
    for entry in data:
        if isinstance(entry, str):
            plugins.append(PluginRef(name=entry))
        elif isinstance(entry, dict) and isinstance(entry.get("name"), str):
            options = entry.get("options") or {}
            if not isinstance(options, dict):
                raise ConfigError(f"Options for plugin '{entry['name']}' must be an object")
            plugins.append(PluginRef(name=entry["name"], options=options))
        else:
            raise ConfigError(f"Invalid plugin entry: {entry!r}")
    return plugins


def config_from_dict(data: Mapping[str, Any]) -> Config:
    """
    Build a Config from raw data, merging over the defaults.

    Raises:
        ConfigError: on unknown keys or wrongly typed sections
    """
    unknown = sorted(set(data) - {f.name for f in fields(Config)} - {"version"})
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    config = Config()
    if "project" in data:
        config.project = _merge_section(config.project, data["project"], "project")
    if "scanning" in data:
        config.scanning = _merge_section(config.scanning, data["scanning"], "scanning")
    if "ci" in data:
        config.ci = _merge_section(config.ci, data["ci"], "ci")
    if "plugins" in data:
        config.plugins = _parse_plugins(data["plugins"])
    if "deprecated" in data:
        if not isinstance(data["deprecated"], list):
            raise ConfigError("'deprecated' must be a list")
        config.deprecated = list(data["deprecated"])

    return config


def find_config_file(root_dir: str = ".") -> Optional[Path]:
    """Return the first config file present in root_dir, if any."""
    root = Path(root_dir)
    for filename in CONFIG_FILENAMES:
        path = root / filename
        if path.is_file():
            return path
    return None


def load_config(root_dir: str = ".") -> LoadConfigResult:
    """
    Load the configuration for a workspace root.

    Returns defaults when no config file exists.

    Raises:
        ConfigError: if the file is not valid JSON or has invalid content
    """
    path = find_config_file(root_dir)
    if path is None:
        return LoadConfigResult(config=Config())

    return load_config_from_file(path)


def load_config_from_file(path: Path) -> LoadConfigResult:
    """Load configuration from a specific JSON file."""
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load envdoctor config from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config in {path} must be a JSON object")

    return LoadConfigResult(config=config_from_dict(data), filepath=Path(path), found=True)


def detected_platform(config: Config, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the name of the first CI platform whose indicator is set."""
    env = os.environ if environ is None else environ

    for platform, env_vars in config.ci.detection.items():
        for env_var in env_vars:
            if env.get(env_var):
                return platform
    return None


def is_ci(config: Config, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether any CI indicator from the detection table is set."""
    return detected_platform(config, environ) is not None


def should_skip(config: Config, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether the skip variable is set."""
    env = os.environ if environ is None else environ
    skip_var = config.ci.skip_env_var
    return bool(skip_var and env.get(skip_var))
