"""
Plugin registry.

One registry is built per command invocation and passed explicitly to
whatever needs it. A new registry is always empty.
"""

import logging
from typing import List, Optional, Set, Tuple

from ..core.errors import HookError
from ..core.types import (
    AppInfo,
    ReconciliationResult,
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
)
from .types import (
    CommandProvider,
    DeploymentProvider,
    Plugin,
    PluginHooks,
    ValueSourceProvider,
)

logger = logging.getLogger(__name__)


class PluginRegistry:
    """
    Registered plugins and everything they contribute.

    Contributions are kept in registration order. Lookups return the first
    match.
    """

    def __init__(self):
        self.plugins: List[Plugin] = []
        self.sources: List[ValueSourceProvider] = []
        self.deployment_providers: List[DeploymentProvider] = []
        self.commands: List[CommandProvider] = []
        self.hooks: List[Tuple[str, PluginHooks]] = []

    def register(self, plugin: Plugin) -> None:
        self.plugins.append(plugin)
        self.sources.extend(plugin.sources)
        self.deployment_providers.extend(plugin.deployment_providers)
        self.commands.extend(plugin.commands)
        if plugin.hooks is not None:
            self.hooks.append((plugin.meta.name, plugin.hooks))
        logger.debug("Registered plugin %s %s", plugin.meta.name, plugin.meta.version)

    def register_all(self, plugins) -> None:
        for plugin in plugins:
            self.register(plugin)

    def find_source(self, definition: VariableDefinition) -> Optional[ValueSourceProvider]:
        """First registered value source that matches the definition."""
        for source in self.sources:
            if source.matches(definition):
                return source
        return None

    def find_deployment_provider(self, name: str) -> Optional[DeploymentProvider]:
        for provider in self.deployment_providers:
            if provider.name == name:
                return provider
        return None

    def find_command(self, name: str) -> Optional[CommandProvider]:
        for command in self.commands:
            if command.name == name:
                return command
        return None

    def ignore_missing(self) -> Set[str]:
        """Union of every plugin's ignore_missing names."""
        ignored: Set[str] = set()
        for plugin in self.plugins:
            ignored.update(plugin.ignore_missing)
        return ignored

    def _run(self, hook_name: str, *args) -> None:
        for plugin_name, hooks in self.hooks:
            hook = getattr(hooks, hook_name)
            if hook is None:
                continue
            try:
                hook(*args)
            except Exception as e:
                raise HookError(plugin_name, hook_name, e) from e

    def run_on_init(self, config) -> None:
        self._run("on_init", config)

    def run_before_sync(self, apps: List[AppInfo]) -> None:
        self._run("before_sync", apps)

    def run_after_sync(self, results: List[ReconciliationResult]) -> None:
        self._run("after_sync", results)

    def run_before_resolve(self, definition: VariableDefinition, context: ResolverContext) -> None:
        self._run("before_resolve", definition, context)

    def run_after_resolve(
        self,
        definition: VariableDefinition,
        result: ResolvedValue,
        context: ResolverContext,
    ) -> None:
        self._run("after_resolve", definition, result, context)
