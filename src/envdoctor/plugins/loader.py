"""
Plugin loading from the configured plugin list.

Each entry names an importable object as `module[:attr]`. Without an
attr a module-level `plugin` value is used, then the module's own
`create_plugin` factory. Factories are called with the entry's options.
"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import List

from ..core.config import Config, PluginRef
from ..core.errors import PluginLoadError
from .registry import PluginRegistry
from .types import Plugin, create_plugin as plugin_helper

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    registry: PluginRegistry
    plugins: List[Plugin] = field(default_factory=list)
    errors: List[PluginLoadError] = field(default_factory=list)


def _own_factory(module):
    """The module's create_plugin, unless it is the helper imported from here."""
    factory = getattr(module, "create_plugin", None)
    if callable(factory) and factory is not plugin_helper:
        return factory
    return None


def load_plugin(ref: PluginRef) -> Plugin:
    """
    Import and build a single plugin.

    Raises:
        PluginLoadError: if the module cannot be imported or does not
            provide a Plugin
    """
    module_name, _, attr = ref.name.partition(":")

    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        raise PluginLoadError(ref.name, f"import failed: {e}", e) from e

    if attr:
        target = getattr(module, attr, None)
        if target is None:
            raise PluginLoadError(ref.name, f"module has no attribute '{attr}'")
    elif getattr(module, "plugin", None) is not None:
        target = module.plugin
    elif _own_factory(module) is not None:
        target = _own_factory(module)
    else:
        raise PluginLoadError(ref.name, "module does not export a plugin")

    if callable(target) and not isinstance(target, Plugin):
        try:
            target = target(ref.options)
        except Exception as e:
            raise PluginLoadError(ref.name, f"factory raised: {e}", e) from e

    if not isinstance(target, Plugin):
        raise PluginLoadError(ref.name, f"expected a Plugin, got {type(target).__name__}")

    return target


def load_plugins(config: Config) -> LoadResult:
    """
    Build a fresh registry from the configured plugins.

    A plugin that fails to load is logged and skipped; the rest still load.
    """
    result = LoadResult(registry=PluginRegistry())

    for ref in config.plugins:
        try:
            plugin = load_plugin(ref)
        except PluginLoadError as e:
            logger.warning("%s", e)
            result.errors.append(e)
            continue

        result.registry.register(plugin)
        result.plugins.append(plugin)

    return result
