"""
Plugin contract for envdoctor.

A plugin is a plain Plugin value. It can contribute value sources for
custom directives, deployment providers, extra CLI commands, and
lifecycle hooks.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..core.types import (
    AppInfo,
    ReconciliationResult,
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
)


Resolver = Callable[[VariableDefinition, ResolverContext], ResolvedValue]


@dataclass(frozen=True)
class PluginMeta:
    name: str
    version: str = "0.0.0"
    description: str = ""


@dataclass
class ValueSourceProvider:
    """
    Resolves variables for one directive type.

    A provider matches a definition when its directive_type equals the
    definition's directive type, or when its pattern occurs in the
    definition's raw comment.
    """
    directive_type: str
    resolve: Resolver
    pattern: Optional["re.Pattern[str]"] = None
    is_available: Optional[Callable[[ResolverContext], bool]] = None
    unavailable_message: Optional[str] = None

    def matches(self, definition: VariableDefinition) -> bool:
        if definition.directive.type == self.directive_type:
            return True
        if self.pattern is not None and self.pattern.search(definition.raw_comment):
            return True
        return False


@dataclass(frozen=True)
class DeploymentTarget:
    name: str
    id: Optional[str] = None


@dataclass
class DeploymentResult:
    success: bool
    message: str


@dataclass
class DeploymentProvider:
    """Pushes resolved variables to a hosting platform."""
    name: str
    get_targets: Callable[[AppInfo, ResolverContext], List[DeploymentTarget]]
    deploy: Callable[[AppInfo, Mapping[str, str], DeploymentTarget, ResolverContext], DeploymentResult]
    is_available: Optional[Callable[[ResolverContext], bool]] = None
    unavailable_message: Optional[str] = None


@dataclass
class CommandProvider:
    """An extra CLI command. The handler returns an exit code."""
    name: str
    description: str
    handler: Callable[[Sequence[str], ResolverContext], int]
    usage: Optional[str] = None


@dataclass
class PluginHooks:
    on_init: Optional[Callable[[Any], None]] = None
    before_sync: Optional[Callable[[List[AppInfo]], None]] = None
    after_sync: Optional[Callable[[List[ReconciliationResult]], None]] = None
    before_resolve: Optional[Callable[[VariableDefinition, ResolverContext], None]] = None
    after_resolve: Optional[Callable[[VariableDefinition, ResolvedValue, ResolverContext], None]] = None


@dataclass
class Plugin:
    meta: PluginMeta
    sources: List[ValueSourceProvider] = field(default_factory=list)
    deployment_providers: List[DeploymentProvider] = field(default_factory=list)
    commands: List[CommandProvider] = field(default_factory=list)
    hooks: Optional[PluginHooks] = None
    # Platform-provided variables dropped from every schema
    ignore_missing: List[str] = field(default_factory=list)


def create_plugin(name: str, version: str = "0.0.0", description: str = "", **parts) -> Plugin:
    """Convenience constructor for plugin modules."""
    return Plugin(meta=PluginMeta(name=name, version=version, description=description), **parts)


PluginOptions = Dict[str, Any]
