"""
Source scanning for environment variable usage.

Finds the names an app reads from its environment and compares them with
the app's schema.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

from .config import Config
from .types import AppInfo, VariableDefinition

logger = logging.getLogger(__name__)


USAGE_PATTERNS = [
    re.compile(r"process\.env\.([A-Z][A-Z0-9_]*)"),
    re.compile(r"process\.env\[[\"']([A-Z][A-Z0-9_]*)[\"']\]"),
    re.compile(r"import\.meta\.env\.([A-Z][A-Z0-9_]*)"),
    re.compile(r"os\.environ\[[\"']([A-Z][A-Z0-9_]*)[\"']\]"),
    re.compile(r"os\.environ\.get\(\s*[\"']([A-Z][A-Z0-9_]*)[\"']"),
    re.compile(r"os\.getenv\(\s*[\"']([A-Z][A-Z0-9_]*)[\"']"),
]

# Set by the runtime, never declared in a schema
BUILTIN_IGNORED = {"NODE_ENV"}

SKIP_FILES = {"env-doctor.ts", "env-doctor.js"}


@dataclass(frozen=True)
class EnvUsage:
    """One place a variable is read."""
    file: Path
    line: int


@dataclass
class DiagnoseResult:
    """Used names compared with the schema."""
    missing: Dict[str, List[EnvUsage]] = field(default_factory=dict)
    unused: List[str] = field(default_factory=list)
    defined: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def scan_text(content: str) -> List[Tuple[str, int]]:
    """(name, line number) for every usage in a source text."""
    found = []
    for number, line in enumerate(content.splitlines(), start=1):
        for pattern in USAGE_PATTERNS:
            for match in pattern.finditer(line):
                found.append((match.group(1), number))
    return found


def _source_files(directory: Path, extensions: Set[str], skip_dirs: Set[str], recursive: bool):
    if not directory.is_dir():
        return

    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames[:] = sorted(
            d for d in dirnames if d not in skip_dirs and not d.startswith(".")
        )
        for filename in sorted(filenames):
            if filename in SKIP_FILES:
                continue
            if os.path.splitext(filename)[1] in extensions:
                yield Path(dirpath) / filename
        if not recursive:
            break


def scan_app_usage(app: AppInfo, config: Config) -> Dict[str, List[EnvUsage]]:
    """
    Scan an app's source directory and its top-level files.

    Returns:
        Variable name -> usages, in the order they were found
    """
    extensions = set(config.scanning.extensions)
    skip_dirs = set(config.scanning.skip_dirs)
    app_path = Path(app.path)

    files = list(_source_files(app_path, extensions, skip_dirs, recursive=False))
    source_dir = app_path / config.project.source_dir
    if source_dir.resolve() != app_path.resolve():
        files.extend(_source_files(source_dir, extensions, skip_dirs, recursive=True))

    usages: Dict[str, List[EnvUsage]] = {}
    for path in files:
        try:
            content = path.read_text(errors="replace")
        except OSError as e:
            logger.warning("Could not read %s: %s", path, e)
            continue
        for name, line in scan_text(content):
            usages.setdefault(name, []).append(EnvUsage(file=path, line=line))

    logger.debug("Scanned %d file(s) in %s", len(files), app.name)
    return usages


def diagnose_usage(
    usages: Dict[str, List[EnvUsage]],
    schema: Iterable[VariableDefinition],
    config: Config,
    ignore_missing: Iterable[str] = (),
) -> DiagnoseResult:
    """Compare used names with the schema."""
    defined = [v.name for v in schema]
    defined_set = set(defined)
    ignored = BUILTIN_IGNORED | set(config.scanning.ignore_missing) | set(ignore_missing)
    ignore_unused = set(config.scanning.ignore_unused)

    result = DiagnoseResult(defined=defined)
    for name, places in usages.items():
        if name not in defined_set and name not in ignored:
            result.missing[name] = places
    result.unused = [
        name for name in defined if name not in usages and name not in ignore_unused
    ]
    return result
