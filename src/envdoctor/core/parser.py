"""
Directive parser for annotated example files (.env.local.example).

Comment lines directly above an assignment describe it. Tags inside that
block choose how the value is obtained:

    # Stripe secret key [required] [prompt]
    STRIPE_SECRET_KEY=

    # Same as the API URL [copy:API_URL]
    NEXT_PUBLIC_API_URL=

A blank line ends a comment block. Tags that cannot be read leave the
variable as a plain placeholder.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple, TYPE_CHECKING

from .lexer import split_lines
from .types import (
    Directive,
    DirectiveType,
    VariableDefinition,
    OPTIONAL,
    REQUIRED,
)

if TYPE_CHECKING:
    from ..plugins.types import ValueSourceProvider


REQUIREMENT_PATTERN = re.compile(r"\[(required|optional|deprecated)\]", re.IGNORECASE)

# Tried in this order; the first one found sets the directive.
DIRECTIVE_PATTERNS: List[Tuple[DirectiveType, "re.Pattern[str]"]] = [
    (DirectiveType.PROMPT, re.compile(r"\[prompt\]", re.IGNORECASE)),
    (DirectiveType.COMPUTED, re.compile(r"\[computed(?::(\w+))?\]", re.IGNORECASE)),
    (DirectiveType.COPY, re.compile(r"\[copy(?::([A-Za-z_][A-Za-z0-9_]*))?\]", re.IGNORECASE)),
    (DirectiveType.DEFAULT, re.compile(r"\[default:([^\]]+)\]", re.IGNORECASE)),
    (DirectiveType.BOOLEAN, re.compile(r"\[boolean(?::([^/\]]+)/([^\]]+))?\]", re.IGNORECASE)),
    (DirectiveType.LOCAL_ONLY, re.compile(r"\[local-only(?::([^\]]+))?\]", re.IGNORECASE)),
    (DirectiveType.PLACEHOLDER, re.compile(r"\[placeholder\]", re.IGNORECASE)),
]

VAR_LINE_PATTERN = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$")


def _build_directive(kind: DirectiveType, match: "re.Match[str]") -> Directive:
    if kind == DirectiveType.COMPUTED:
        return Directive(type=kind.value, compute_type=match.group(1))
    if kind == DirectiveType.COPY:
        return Directive(type=kind.value, copy_from=match.group(1))
    if kind == DirectiveType.DEFAULT:
        return Directive(type=kind.value, default_value=match.group(1))
    if kind == DirectiveType.BOOLEAN:
        return Directive(
            type=kind.value,
            boolean_yes=match.group(1) or "true",
            boolean_no=match.group(2) or "false",
        )
    if kind == DirectiveType.LOCAL_ONLY:
        return Directive(type=kind.value, default_value=match.group(1))
    return Directive(type=kind.value)


def parse_comment(
    comment: str,
    plugin_sources: Iterable["ValueSourceProvider"] = (),
) -> Tuple[str, Directive, str, bool]:
    """
    Read the tags out of a comment block.

    Args:
        comment: Comment text with the leading '#' of each line removed
        plugin_sources: Providers whose patterns are tried before built-ins

    Returns:
        Tuple of (requirement, directive, description, deprecated)
    """
    directive = Directive()
    description = comment
    explicit_requirement: Optional[str] = None

    req_match = REQUIREMENT_PATTERN.search(comment)
    if req_match:
        explicit_requirement = req_match.group(1).lower()
        description = description.replace(req_match.group(0), "")

    found = False
    for source in plugin_sources:
        if source.pattern is None:
            continue
        match = source.pattern.search(comment)
        if match:
            directive = Directive(type=source.directive_type, raw=match.group(0))
            description = description.replace(match.group(0), "")
            found = True
            break

    if not found:
        for kind, pattern in DIRECTIVE_PATTERNS:
            match = pattern.search(comment)
            if match:
                directive = _build_directive(kind, match)
                description = description.replace(match.group(0), "")
                break

    deprecated = explicit_requirement == "deprecated"
    if explicit_requirement == REQUIRED:
        requirement = REQUIRED
    elif explicit_requirement is not None:
        requirement = OPTIONAL
    elif directive.type == DirectiveType.LOCAL_ONLY.value:
        requirement = OPTIONAL
    else:
        requirement = REQUIRED

    description = re.sub(r"\s+", " ", description).strip()

    return requirement, directive, description, deprecated


def parse_example(
    content: str,
    plugin_sources: Iterable["ValueSourceProvider"] = (),
) -> List[VariableDefinition]:
    """
    Parse example file content into variable definitions, in file order.

    A name assigned twice keeps its first position but takes the last
    definition.
    """
    plugin_sources = list(plugin_sources)
    definitions: Dict[str, VariableDefinition] = {}
    pending: List[str] = []

    for line in split_lines(content):
        stripped = line.strip()

        if not stripped:
            pending = []
            continue

        if stripped.startswith("#"):
            pending.append(stripped[1:].strip())
            continue

        match = VAR_LINE_PATTERN.match(stripped)
        if not match:
            continue

        raw_comment = " ".join(pending)
        requirement, directive, description, deprecated = parse_comment(raw_comment, plugin_sources)
        name = match.group(1)
        definitions[name] = VariableDefinition(
            name=name,
            example_value=match.group(2),
            requirement=requirement,
            directive=directive,
            description=description,
            raw_comment=raw_comment,
            deprecated=deprecated,
        )
        pending = []

    return list(definitions.values())


def parse_example_file(
    path,
    plugin_sources: Iterable["ValueSourceProvider"] = (),
) -> List[VariableDefinition]:
    """Parse an example file. A missing file is an empty schema."""
    try:
        with open(path, "r") as f:
            content = f.read()
    except FileNotFoundError:
        return []

    return parse_example(content, plugin_sources)
