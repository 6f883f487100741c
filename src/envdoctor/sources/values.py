"""
Non-interactive resolvers: copy, default, placeholder, computed, local-only.
"""

from ..core.config import is_ci
from ..core.types import (
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
    SOURCE_COPIED,
    SOURCE_DEFAULT,
    SOURCE_PLACEHOLDER,
)


def placeholder_for(definition: VariableDefinition) -> str:
    """The example value, or a marker that is obviously not a real value."""
    return definition.example_value or f"REPLACE_ME_{definition.name}"


def resolve_copy(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    """Copy the value of another variable known in this pass."""
    copy_from = definition.directive.copy_from

    if not copy_from:
        return ResolvedValue(
            value=definition.example_value,
            source=SOURCE_PLACEHOLDER,
            warning=f"No source variable specified for copy directive on {definition.name}",
        )

    source_value = context.current_values.get(copy_from)
    if source_value is not None:
        return ResolvedValue(value=source_value, source=SOURCE_COPIED)

    return ResolvedValue(
        value=definition.example_value,
        source=SOURCE_PLACEHOLDER,
        warning=f"Source variable {copy_from} not found for copying to {definition.name}",
    )


def resolve_default(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    default_value = definition.directive.default_value
    if default_value is not None:
        return ResolvedValue(value=default_value, source=SOURCE_DEFAULT)

    return ResolvedValue(value=definition.example_value, source=SOURCE_DEFAULT)


def resolve_placeholder(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    warning = None
    if definition.is_required:
        warning = f"Placeholder used for required variable: {definition.name}"

    return ResolvedValue(
        value=placeholder_for(definition),
        source=SOURCE_PLACEHOLDER,
        warning=warning,
    )


def resolve_computed(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    """No compute types are implemented; always falls back to the example value."""
    compute_type = definition.directive.compute_type

    if compute_type:
        warning = f"Computed type '{compute_type}' not supported, using example value for {definition.name}"
    else:
        warning = f"No compute type specified for {definition.name}, using example value"

    return ResolvedValue(
        value=definition.example_value,
        source=SOURCE_PLACEHOLDER,
        warning=warning,
    )


def should_skip_local_only(context: ResolverContext) -> bool:
    """Local-only variables are skipped in CI and whenever we cannot ask."""
    return not context.interactive or is_ci(context.config)


def resolve_local_only(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    if should_skip_local_only(context):
        return ResolvedValue(value="", source=SOURCE_DEFAULT, skipped=True)

    value = definition.directive.default_value or definition.example_value
    return ResolvedValue(value=value or "", source=SOURCE_DEFAULT)
