"""Translation-key reconciliation engine.

Decides which keys used in code are missing from the remote translation store
and which remote keys look unused. Pure computation: no I/O, no retries; the
caller hands in fully materialised usage records and the remote tree.
"""

from __future__ import annotations

from .flattener import TreePaths, flatten_tree, group_keys_by_namespace
from .fuzzy import MatchKind, match_fragment, resolve_fragment
from .patterns import compile_pattern
from .reconciler import coverage_percent, reconcile

__all__ = [
    "TreePaths",
    "MatchKind",
    "compile_pattern",
    "coverage_percent",
    "flatten_tree",
    "group_keys_by_namespace",
    "match_fragment",
    "reconcile",
    "resolve_fragment",
]
