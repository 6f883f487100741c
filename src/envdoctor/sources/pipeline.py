"""
Value resolution pipeline.

Resolver selection, in order:
1. the first registered plugin source matching the definition
2. the built-in resolver for the directive type
3. the placeholder resolver

A pass walks the schema strictly in order and records each value as it
goes, so a copy directive can see values resolved earlier in the same pass.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..core.types import (
    BUILTIN_DIRECTIVE_TYPES,
    DirectiveType,
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
    SOURCE_EXISTING,
    SOURCE_PLACEHOLDER,
)
from ..plugins.registry import PluginRegistry
from ..plugins.types import Resolver
from .prompt import resolve_boolean, resolve_prompt
from .values import (
    resolve_computed,
    resolve_copy,
    resolve_default,
    resolve_local_only,
    resolve_placeholder,
)

logger = logging.getLogger(__name__)


BUILTIN_RESOLVERS: Dict[str, Resolver] = {
    DirectiveType.PLACEHOLDER.value: resolve_placeholder,
    DirectiveType.DEFAULT.value: resolve_default,
    DirectiveType.PROMPT.value: resolve_prompt,
    DirectiveType.COPY.value: resolve_copy,
    DirectiveType.COMPUTED.value: resolve_computed,
    DirectiveType.LOCAL_ONLY.value: resolve_local_only,
    DirectiveType.BOOLEAN.value: resolve_boolean,
}


def _resolve_unknown(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    result = resolve_placeholder(definition, context)
    result.warning = (
        f"No resolver for directive '{definition.directive.type}' on {definition.name}, "
        f"using placeholder"
    )
    return result


def resolve_value(
    definition: VariableDefinition,
    context: ResolverContext,
    registry: Optional[PluginRegistry] = None,
) -> ResolvedValue:
    """Resolve one variable. Never raises for resolution problems."""
    existing = context.current_values.get(definition.name)
    if existing:
        return ResolvedValue(value=existing, source=SOURCE_EXISTING)

    source = registry.find_source(definition) if registry is not None else None
    if source is not None:
        if source.is_available is not None and not source.is_available(context):
            return ResolvedValue(
                value=definition.example_value,
                source=SOURCE_PLACEHOLDER,
                warning=source.unavailable_message
                or f"Plugin source '{source.directive_type}' is not available",
            )
        logger.debug("Resolving %s with plugin source %s", definition.name, source.directive_type)
        return source.resolve(definition, context)

    directive_type = definition.directive.type
    if directive_type not in BUILTIN_DIRECTIVE_TYPES:
        return _resolve_unknown(definition, context)

    logger.debug("Resolving %s with built-in %s", definition.name, directive_type)
    return BUILTIN_RESOLVERS[directive_type](definition, context)


@dataclass
class PassResult:
    """What a resolution pass produced, in schema order."""
    resolved: Dict[str, ResolvedValue] = field(default_factory=dict)
    updates: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> List[str]:
        return [name for name, result in self.resolved.items() if result.skipped]


def run_resolution_pass(
    schema: Iterable[VariableDefinition],
    context: ResolverContext,
    registry: Optional[PluginRegistry] = None,
) -> PassResult:
    """
    Resolve every variable that has no value yet, in schema order.

    Non-skipped values are recorded in context.current_values before the
    next variable is looked at.
    """
    result = PassResult()

    for definition in schema:
        if context.current_values.get(definition.name):
            continue

        if registry is not None:
            registry.run_before_resolve(definition, context)

        resolved = resolve_value(definition, context, registry)

        if registry is not None:
            registry.run_after_resolve(definition, resolved, context)

        result.resolved[definition.name] = resolved
        if resolved.warning:
            result.warnings.append(resolved.warning)

        if not resolved.skipped:
            result.updates[definition.name] = resolved.value
            context.current_values.record(definition.name, resolved.value)

    return result
