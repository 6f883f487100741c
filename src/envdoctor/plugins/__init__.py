"""
envdoctor plugin support.

Includes:
- types: the Plugin contract
- registry: per-invocation registry of plugin contributions
- loader: builds a registry from the configured plugin list
- deploy: plans and runs deployments through registered providers
"""

from .types import (
    CommandProvider,
    DeploymentProvider,
    DeploymentResult,
    DeploymentTarget,
    Plugin,
    PluginHooks,
    PluginMeta,
    ValueSourceProvider,
    create_plugin,
)
from .registry import PluginRegistry
from .loader import LoadResult, load_plugin, load_plugins

__all__ = [
    "CommandProvider",
    "DeploymentProvider",
    "DeploymentResult",
    "DeploymentTarget",
    "Plugin",
    "PluginHooks",
    "PluginMeta",
    "ValueSourceProvider",
    "create_plugin",
    "PluginRegistry",
    "LoadResult",
    "load_plugin",
    "load_plugins",
]
