"""
Shared data types for envdoctor.

Definitions come out of the directive parser, flow through the schema
merger, and are consumed by the resolution pipeline and the reconciler.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

if TYPE_CHECKING:
    from .config import Config


class DirectiveType(str, Enum):
    """Directive types understood without any plugin."""
    PLACEHOLDER = "placeholder"
    DEFAULT = "default"
    PROMPT = "prompt"
    COPY = "copy"
    COMPUTED = "computed"
    LOCAL_ONLY = "local-only"
    BOOLEAN = "boolean"


BUILTIN_DIRECTIVE_TYPES = frozenset(t.value for t in DirectiveType)

REQUIRED = "required"
OPTIONAL = "optional"

# Value sources reported on a ResolvedValue. Plugins may use their own.
SOURCE_PROMPTED = "prompted"
SOURCE_DEFAULT = "default"
SOURCE_COPIED = "copied"
SOURCE_PLACEHOLDER = "placeholder"
SOURCE_EXISTING = "existing"


@dataclass(frozen=True)
class Directive:
    """How a variable gets its value. Only the fields for `type` are set."""
    type: str = DirectiveType.PLACEHOLDER.value
    default_value: Optional[str] = None
    copy_from: Optional[str] = None
    compute_type: Optional[str] = None
    boolean_yes: Optional[str] = None
    boolean_no: Optional[str] = None
    raw: Optional[str] = None


@dataclass(frozen=True)
class VariableDefinition:
    """A single variable declared in an example file."""
    name: str
    example_value: str = ""
    requirement: str = REQUIRED
    directive: Directive = field(default_factory=Directive)
    description: str = ""
    raw_comment: str = ""
    deprecated: bool = False

    @property
    def is_required(self) -> bool:
        return self.requirement == REQUIRED


@dataclass(frozen=True)
class AppInfo:
    """An app in the workspace and the paths of its env files."""
    name: str
    path: Path
    env_example_path: Path
    env_local_path: Path


@dataclass
class ResolvedValue:
    """Result of resolving one variable."""
    value: str
    source: str
    warning: Optional[str] = None
    skipped: bool = False


class CurrentValues(Mapping[str, str]):
    """
    Values known during one resolution pass.

    Seeded with the actual env file, then grown as the pass advances.
    Append-only: once a name holds a non-empty value it cannot change, so
    an entry can only ever observe values recorded before it.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def record(self, name: str, value: str) -> None:
        if self._values.get(name):
            raise ValueError(f"{name} already has a value in this pass")
        self._values[name] = value

    def __repr__(self):
        return f"CurrentValues({self._values!r})"


@dataclass
class ResolverContext:
    """Everything a resolver may look at. Lives for a single pass."""
    app: AppInfo
    current_values: CurrentValues
    interactive: bool
    config: "Config"
    root_dir: Path


@dataclass(frozen=True)
class Override:
    """A shared variable whose app value differs from the root value."""
    shared_value: str
    app_value: str


@dataclass
class ReconciliationResult:
    """Classification of a schema against an actual env file."""
    app: AppInfo
    valid: List[VariableDefinition] = field(default_factory=list)
    missing: List[VariableDefinition] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)
    deprecated: List[str] = field(default_factory=list)
    overrides: Dict[str, Override] = field(default_factory=dict)

    @property
    def missing_required(self) -> List[VariableDefinition]:
        return [v for v in self.missing if v.is_required]

    @property
    def missing_optional(self) -> List[VariableDefinition]:
        return [v for v in self.missing if not v.is_required]
