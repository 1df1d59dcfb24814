"""Set reconciliation: the engine entry point.

Pure and synchronous. Given the scanner's key-usage records and the remote
translation tree it builds the local-key universe (scope resolution, fuzzy
matching, dynamic patterns), compares it to the remote leaves and returns a
:class:`SyncReport`.

Invariants (reported as flags, never raised):
  - local:  |universe| == |intersection| + |missing|
  - remote: |leaves|   == |intersection| + |unused| + |dynamic review|
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from domain.models import (
    InvariantFlags,
    KeyUsageRecord,
    MissingKeyEntry,
    ScanStats,
    ScopingSummary,
    SyncReport,
)
from .flattener import flatten_tree, namespace_of
from .fuzzy import MatchKind, resolve_fragments
from .patterns import match_patterns
from .scope import resolve_scopes

__all__ = ["reconcile", "coverage_percent"]

_logger = logging.getLogger(__name__)


def coverage_percent(part: int, whole: int) -> int:
    """Percentage rounded half-up; an empty whole counts as fully covered."""
    if whole <= 0:
        return 100
    return int(math.floor(part / whole * 100 + 0.5))


def _group_sorted(keys: Set[str]) -> Dict[str, Tuple[str, ...]]:
    grouped: Dict[str, List[str]] = {}
    for k in sorted(keys):
        grouped.setdefault(namespace_of(k), []).append(k)
    return {ns: tuple(grouped[ns]) for ns in sorted(grouped)}


def _collect_missing(
    records: Sequence[KeyUsageRecord], universe: Set[str], leaves: Set[str]
) -> Dict[str, Tuple[MissingKeyEntry, ...]]:
    seen: Dict[str, MissingKeyEntry] = {}
    for rec in sorted(records, key=lambda r: (r.key, r.file, r.line)):
        if rec.key in seen or rec.key not in universe or rec.key in leaves:
            continue
        seen[rec.key] = MissingKeyEntry(rec.key, rec.text)
    grouped: Dict[str, List[MissingKeyEntry]] = {}
    for key in sorted(seen):
        grouped.setdefault(namespace_of(key), []).append(seen[key])
    return {ns: tuple(grouped[ns]) for ns in sorted(grouped)}


def reconcile(
    usages: Sequence[KeyUsageRecord],
    remote_tree: Mapping[str, Any],
    *,
    review_dynamic: bool = False,
    scan_stats: Optional[ScanStats] = None,
) -> SyncReport:
    """Reconcile local key usages against a remote translation tree.

    With ``review_dynamic`` set, remote leaves reached only through dynamic
    templates are kept out of the local universe and reported under
    ``dynamic_review_required`` instead of being counted as used.
    """
    paths = flatten_tree(remote_tree)
    leaves = set(paths.leaves)

    scope = resolve_scopes(usages, paths)
    universe = set(scope.universe)

    fuzzy = resolve_fragments(scope.fragments, leaves)
    universe |= fuzzy.keys

    patterns = match_patterns([u for u in usages if u.is_dynamic], leaves)
    review: Set[str] = set()
    if review_dynamic:
        review = patterns.keys - universe
    else:
        universe |= patterns.keys

    intersection = universe & leaves
    missing = _collect_missing(
        list(scope.literal_records) + fuzzy.unresolved_records, universe, leaves
    )
    unused_keys = leaves - universe - review

    kinds = Counter(r.kind for r in fuzzy.resolutions.values())
    scoping = ScopingSummary(
        namespace_expansions=dict(sorted(scope.namespace_expansions.items())),
        container_accesses=dict(sorted(scope.container_accesses.items())),
        fuzzy_unique=kinds[MatchKind.UNIQUE],
        fuzzy_ambiguous=kinds[MatchKind.AMBIGUOUS],
        fuzzy_unresolved=kinds[MatchKind.UNRESOLVED],
    )

    missing_count = sum(len(v) for v in missing.values())
    invariants = InvariantFlags(
        local=len(universe) == len(intersection) + missing_count,
        remote=len(leaves) == len(intersection) + len(unused_keys) + len(review),
    )
    if not invariants.ok:
        _logger.error(
            "Reconciliation invariant failed (local=%s, remote=%s): universe=%d leaves=%d "
            "intersection=%d missing=%d unused=%d review=%d",
            invariants.local,
            invariants.remote,
            len(universe),
            len(leaves),
            len(intersection),
            missing_count,
            len(unused_keys),
            len(review),
        )

    return SyncReport(
        local_total=len(universe),
        remote_total=len(leaves),
        intersection_count=len(intersection),
        local_keys=tuple(sorted(universe)),
        remote_leaves=tuple(sorted(leaves)),
        missing=missing,
        unused=_group_sorted(unused_keys),
        dynamic_review_required=_group_sorted(review),
        dynamic_pattern_matches=tuple(patterns.entries),
        classification={k: scope.classification[k] for k in sorted(scope.classification)},
        filtered_keys=tuple(sorted(scope.filtered_keys, key=lambda f: (f.key, f.reason))),
        local_coverage=coverage_percent(len(intersection), len(universe)),
        remote_coverage=coverage_percent(len(intersection), len(leaves)),
        invariants=invariants,
        scoping=scoping,
        scan_stats=scan_stats,
    )
