"""
envdoctor - Environment variable doctor for multi-app workspaces

Reads annotated .env.local.example files, merges the shared root schema
with each app's schema, and resolves or reconciles it against .env.local.
"""

__version__ = "0.1.0"

from .core import lexer, parser, schema, reconciler

__all__ = [
    "lexer",
    "parser",
    "schema",
    "reconciler",
]
