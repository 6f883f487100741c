"""
envdoctor core modules.

Includes:
- types: Definitions, resolved values, reconciliation results
- lexer: Lossless parsing of actual env files
- parser: Directive parsing of example files
- schema: Root + app schema merging
- reconciler: Drift classification and per-app resolution
- config: Configuration loading and CI detection
- discovery: Workspace app discovery
- errors: Exception types
- export: Schema summaries and value export formats
- usage: Source scanning for variable usage
"""

from . import types
from . import errors
from . import config
from . import lexer
from . import parser
from . import schema
from . import discovery
from . import reconciler
from . import export
from . import usage

__all__ = [
    "types",
    "errors",
    "config",
    "lexer",
    "parser",
    "schema",
    "discovery",
    "reconciler",
    "export",
    "usage",
]
