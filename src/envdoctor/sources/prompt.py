"""
Interactive resolvers: prompt and boolean.

Questions are asked with click so they behave the same as the rest of
the CLI. Both fall back to placeholders in non-interactive mode.
"""

import click

from ..core.types import (
    ResolvedValue,
    ResolverContext,
    VariableDefinition,
    SOURCE_PLACEHOLDER,
    SOURCE_PROMPTED,
)
from .values import placeholder_for


TRUTHY_EXAMPLES = {"true", "yes", "y", "1", "on"}


def _ask(definition: VariableDefinition) -> str:
    hint = definition.description or definition.name
    click.echo("")
    click.echo(click.style("? ", fg="cyan") + hint)

    label = f"  Enter {definition.name}"
    if not definition.is_required and not definition.example_value:
        label += " (Enter to skip)"

    answer = click.prompt(
        label,
        default=definition.example_value,
        show_default=bool(definition.example_value),
    )
    return (answer or "").strip()


def resolve_prompt(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    """
    Ask the user for a value.

    An empty answer takes the example value. With nothing to fall back on,
    optional variables are skipped and required ones need an explicit
    confirmation to skip; declining asks again.
    """
    if not context.interactive:
        return ResolvedValue(
            value=placeholder_for(definition),
            source=SOURCE_PLACEHOLDER,
            warning=f"Non-interactive mode: using placeholder for {definition.name}",
        )

    while True:
        answer = _ask(definition)

        if answer:
            return ResolvedValue(value=answer, source=SOURCE_PROMPTED)

        example = definition.example_value.strip()
        if example:
            return ResolvedValue(value=example, source=SOURCE_PROMPTED)

        if not definition.is_required:
            return ResolvedValue(value="", source=SOURCE_PROMPTED, skipped=True)

        if click.confirm(click.style("  No value provided.", fg="yellow") + " Skip for now?", default=False):
            return ResolvedValue(
                value="",
                source=SOURCE_PROMPTED,
                skipped=True,
                warning=f"Skipped required variable: {definition.name}",
            )


def resolve_boolean(definition: VariableDefinition, context: ResolverContext) -> ResolvedValue:
    """Ask a yes/no question and map the answer to the configured values."""
    yes_value = definition.directive.boolean_yes or "true"
    no_value = definition.directive.boolean_no or "false"

    example = definition.example_value.strip()
    default_is_yes = example == yes_value or example.lower() in TRUTHY_EXAMPLES

    if not context.interactive:
        value = yes_value if default_is_yes else no_value
        return ResolvedValue(
            value=value,
            source=SOURCE_PLACEHOLDER,
            warning=f"Non-interactive mode: using {value} for {definition.name}",
        )

    hint = definition.description or definition.name
    if yes_value != "true" or no_value != "false":
        hint += click.style(f" ({yes_value}/{no_value})", dim=True)
    click.echo("")
    click.echo(click.style("? ", fg="cyan") + hint)

    answer = click.confirm(f"  {definition.name}", default=default_is_yes)
    return ResolvedValue(value=yes_value if answer else no_value, source=SOURCE_PROMPTED)
