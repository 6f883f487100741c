"""
Value sources: built-in resolvers and the resolution pipeline.
"""

from .pipeline import BUILTIN_RESOLVERS, PassResult, resolve_value, run_resolution_pass
from .prompt import resolve_boolean, resolve_prompt
from .values import (
    resolve_computed,
    resolve_copy,
    resolve_default,
    resolve_local_only,
    resolve_placeholder,
    should_skip_local_only,
)

__all__ = [
    "BUILTIN_RESOLVERS",
    "PassResult",
    "resolve_value",
    "run_resolution_pass",
    "resolve_boolean",
    "resolve_prompt",
    "resolve_computed",
    "resolve_copy",
    "resolve_default",
    "resolve_local_only",
    "resolve_placeholder",
    "should_skip_local_only",
]
