"""
Reconciliation of a schema against an actual env file.

compare_schema_to_actual() only classifies. reconcile_app() classifies and
then runs a resolution pass over what is missing.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, TYPE_CHECKING

from .lexer import EnvFile
from .types import (
    AppInfo,
    CurrentValues,
    Override,
    ReconciliationResult,
    ResolverContext,
    VariableDefinition,
)
from ..sources.pipeline import PassResult, run_resolution_pass

if TYPE_CHECKING:
    from ..plugins.registry import PluginRegistry


def compare_schema_to_actual(
    schema: Iterable[VariableDefinition],
    actual: Mapping[str, str],
    app: AppInfo,
    shared_values: Optional[Mapping[str, str]] = None,
    shared_var_names: Optional[Set[str]] = None,
    deprecated_names: Iterable[str] = (),
) -> ReconciliationResult:
    """
    Classify every schema variable against the actual values.

    Args:
        schema: Merged schema for the app
        actual: Name -> value from the app's env file (or an EnvFile)
        app: The app being checked
        shared_values: Values from the root env file, for override detection
        shared_var_names: Names declared in the root schema
        deprecated_names: Names configured as deprecated

    Returns:
        ReconciliationResult. An empty value counts as missing.
    """
    if isinstance(actual, EnvFile):
        actual = actual.values

    result = ReconciliationResult(app=app)
    configured_deprecated = set(deprecated_names)
    schema_names = set()

    for variable in schema:
        schema_names.add(variable.name)
        value = actual.get(variable.name)

        if variable.deprecated or variable.name in configured_deprecated:
            if value is not None:
                result.deprecated.append(variable.name)
            continue

        if not value:
            result.missing.append(variable)
            continue

        result.valid.append(variable)

        if shared_values is not None and shared_var_names and variable.name in shared_var_names:
            shared_value = shared_values.get(variable.name)
            if shared_value is not None and shared_value != value:
                result.overrides[variable.name] = Override(shared_value=shared_value, app_value=value)

    for name in actual:
        if name in schema_names:
            continue
        if name in configured_deprecated:
            result.deprecated.append(name)
        else:
            result.extra.append(name)

    return result


@dataclass
class AppReconciliation:
    result: ReconciliationResult
    pass_result: PassResult = field(default_factory=PassResult)

    @property
    def updates(self):
        return self.pass_result.updates

    @property
    def warnings(self) -> List[str]:
        return self.pass_result.warnings


def reconcile_app(
    app: AppInfo,
    schema: List[VariableDefinition],
    actual: EnvFile,
    context: ResolverContext,
    registry: Optional["PluginRegistry"] = None,
    shared_values: Optional[Mapping[str, str]] = None,
    shared_var_names: Optional[Set[str]] = None,
) -> AppReconciliation:
    """
    Classify an app's env file, then resolve the missing variables.

    The pass walks the missing variables in schema order, so copy
    directives see values resolved earlier in the same pass.
    """
    result = compare_schema_to_actual(
        schema,
        actual,
        app,
        shared_values,
        shared_var_names,
        context.config.deprecated,
    )
    pass_result = run_resolution_pass(result.missing, context, registry)
    return AppReconciliation(result=result, pass_result=pass_result)


def build_context(
    app: AppInfo,
    actual: Mapping[str, str],
    config,
    root_dir,
    interactive: bool,
) -> ResolverContext:
    """Fresh resolver context seeded with the actual values."""
    if isinstance(actual, EnvFile):
        actual = actual.values

    return ResolverContext(
        app=app,
        current_values=CurrentValues(actual),
        interactive=interactive,
        config=config,
        root_dir=Path(root_dir),
    )


def collect_shared_values(
    actuals: Iterable[Mapping[str, str]],
    shared_var_names: Iterable[str],
) -> Dict[str, str]:
    """
    First non-empty value of each shared name across several env files.

    Files are searched in the order given.
    """
    names = set(shared_var_names)
    found: Dict[str, str] = {}

    for actual in actuals:
        if isinstance(actual, EnvFile):
            actual = actual.values
        for name, value in actual.items():
            if name in names and value and name not in found:
                found[name] = value

    return found
