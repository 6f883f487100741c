"""
Deployment through plugin-provided providers.

A plan fixes the provider, the values, and the targets before anything is
pushed. Each target is deployed on its own; one failure does not stop the
others.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple

from ..core.errors import DeploymentError
from ..core.export import export_values
from ..core.types import AppInfo, DirectiveType, ResolverContext, VariableDefinition
from .types import DeploymentProvider, DeploymentResult, DeploymentTarget

logger = logging.getLogger(__name__)


@dataclass
class DeploymentPlan:
    provider: DeploymentProvider
    app: AppInfo
    values: Dict[str, str] = field(default_factory=dict)
    targets: List[DeploymentTarget] = field(default_factory=list)


def deployable_values(
    schema: Iterable[VariableDefinition],
    actual: Mapping[str, str],
) -> Dict[str, str]:
    """Set values of the schema, without local-only variables."""
    schema = [v for v in schema if v.directive.type != DirectiveType.LOCAL_ONLY.value]
    return export_values(schema, actual)


def plan_deployment(
    provider: DeploymentProvider,
    app: AppInfo,
    values: Mapping[str, str],
    context: ResolverContext,
    target_names: Iterable[str] = (),
) -> DeploymentPlan:
    """
    Check the provider and pick its targets.

    Args:
        target_names: Only deploy to these targets (default: all of them)

    Raises:
        DeploymentError: provider unavailable, failing, or missing a target
    """
    try:
        available = provider.is_available is None or provider.is_available(context)
        targets = list(provider.get_targets(app, context)) if available else []
    except Exception as e:
        raise DeploymentError(provider.name, f"failed: {e}", e) from e

    if not available:
        reason = "is not available"
        if provider.unavailable_message:
            reason = f"{reason}: {provider.unavailable_message}"
        raise DeploymentError(provider.name, reason)

    wanted = list(target_names)
    if wanted:
        by_name = {t.name: t for t in targets}
        unknown = [name for name in wanted if name not in by_name]
        if unknown:
            raise DeploymentError(provider.name, f"has no target named {', '.join(unknown)}")
        targets = [by_name[name] for name in wanted]

    return DeploymentPlan(provider=provider, app=app, values=dict(values), targets=targets)


def execute_plan(
    plan: DeploymentPlan,
    context: ResolverContext,
) -> List[Tuple[DeploymentTarget, DeploymentResult]]:
    """Deploy to every planned target and collect the results."""
    results = []
    for target in plan.targets:
        try:
            result = plan.provider.deploy(plan.app, dict(plan.values), target, context)
        except Exception as e:
            logger.debug("Deploy to %s raised", target.name, exc_info=True)
            result = DeploymentResult(success=False, message=str(e))

        if not isinstance(result, DeploymentResult):
            result = DeploymentResult(
                success=False,
                message=f"provider returned {type(result).__name__}, not a DeploymentResult",
            )
        results.append((target, result))
    return results
