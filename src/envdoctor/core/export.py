"""
Export of schemas and values.

The json format describes every app's schema. The shell and values formats
print the set values of one app in schema order.
"""

import json
from typing import Dict, Iterable, List, Mapping

from .lexer import EnvFile
from .types import VariableDefinition


EXPORT_FORMATS = ("json", "shell", "values")


def summarize_schema(
    schema: Iterable[VariableDefinition],
    shared_names: Iterable[str],
) -> Dict[str, List[str]]:
    """Names of an app's schema split by requirement and by origin."""
    shared = set(shared_names)
    summary: Dict[str, List[str]] = {
        "required": [],
        "optional": [],
        "app_specific": [],
        "shared": [],
    }
    for variable in schema:
        if variable.deprecated:
            continue
        summary["required" if variable.is_required else "optional"].append(variable.name)
        summary["shared" if variable.name in shared else "app_specific"].append(variable.name)
    return summary


def export_values(
    schema: Iterable[VariableDefinition],
    actual: Mapping[str, str],
) -> Dict[str, str]:
    """Non-empty values of the schema's variables, in schema order."""
    if isinstance(actual, EnvFile):
        actual = actual.values

    return {v.name: actual[v.name] for v in schema if actual.get(v.name)}


def shell_quote(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


def format_values(values: Mapping[str, str], fmt: str) -> str:
    """
    Render name/value pairs as shell exports or plain assignments.

    Raises:
        ValueError: for a format other than shell or values
    """
    if fmt == "shell":
        lines = [f"export {name}={shell_quote(value)}" for name, value in values.items()]
    elif fmt == "values":
        lines = [f"{name}={value}" for name, value in values.items()]
    else:
        raise ValueError(f"Unknown export format: {fmt}")
    return "\n".join(lines)


def format_summaries(summaries: Mapping[str, Mapping[str, List[str]]]) -> str:
    return json.dumps(summaries, indent=2)
