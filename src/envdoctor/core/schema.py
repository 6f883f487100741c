"""
Schema merging: shared root example + app example -> one ordered schema.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from .config import Config
from .parser import parse_example_file
from .types import AppInfo, VariableDefinition

if TYPE_CHECKING:
    from ..plugins.registry import PluginRegistry


def merge_schemas(
    root: Iterable[VariableDefinition],
    app: Iterable[VariableDefinition],
) -> List[VariableDefinition]:
    """
    Merge a root schema with an app schema.

    Root definitions keep their order. An app definition with the same name
    replaces the root one entirely, in the root one's position. App-only
    definitions follow, in app order.
    """
    merged: Dict[str, VariableDefinition] = {}

    for definition in root:
        merged[definition.name] = definition

    for definition in app:
        merged[definition.name] = definition

    return list(merged.values())


def root_example_path(config: Config, root_dir) -> Path:
    return Path(root_dir) / config.project.root_env_example


def root_local_path(config: Config, root_dir) -> Path:
    return Path(root_dir) / config.project.root_env_local


def get_root_schema(
    config: Config,
    root_dir,
    registry: Optional["PluginRegistry"] = None,
) -> List[VariableDefinition]:
    sources = registry.sources if registry is not None else ()
    return parse_example_file(root_example_path(config, root_dir), sources)


def get_app_schema(
    app: AppInfo,
    config: Config,
    root_dir,
    registry: Optional["PluginRegistry"] = None,
) -> List[VariableDefinition]:
    """
    Merged schema for an app, minus ignored variables.

    Names listed in any plugin's ignore_missing or in
    config.scanning.ignore_missing are dropped entirely.
    """
    sources = registry.sources if registry is not None else ()
    root_schema = get_root_schema(config, root_dir, registry)

    # A single-project workspace uses the root example as the app example
    if Path(app.env_example_path).resolve() == root_example_path(config, root_dir).resolve():
        app_schema: List[VariableDefinition] = []
    else:
        app_schema = parse_example_file(app.env_example_path, sources)

    ignored = set(config.scanning.ignore_missing)
    if registry is not None:
        ignored |= registry.ignore_missing()

    return [d for d in merge_schemas(root_schema, app_schema) if d.name not in ignored]
