"""Scope resolution: namespace bindings and container access.

Runs before any matching. Every record ends up in exactly one of three
places: expanded to the leaves below a remote container, added to
the local universe verbatim (``literal_records``), or deferred to the fuzzy
matcher (``fragments``, the unknown-scoped records). Dynamic records take the
same path with their template as the key; the pattern matcher sees them too.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set

from domain.models import BindingType, FilteredKey, KeyUsageRecord
from .flattener import TreePaths

__all__ = ["ScopeResolution", "resolve_scopes", "CONTAINER_WITH_CHILDREN"]

_logger = logging.getLogger(__name__)

CONTAINER_WITH_CHILDREN = "container with extracted children"


@dataclass
class ScopeResolution:
    universe: Set[str] = field(default_factory=set)
    literal_records: List[KeyUsageRecord] = field(default_factory=list)
    fragments: List[KeyUsageRecord] = field(default_factory=list)
    namespace_expansions: Dict[str, int] = field(default_factory=dict)
    container_accesses: Dict[str, int] = field(default_factory=dict)
    filtered_keys: Set[FilteredKey] = field(default_factory=set)
    classification: Counter = field(default_factory=Counter)


def _has_extracted_children(key: str, raw_keys: Set[str]) -> bool:
    prefix = key + "."
    return any(other.startswith(prefix) for other in raw_keys)


def resolve_scopes(usages: Sequence[KeyUsageRecord], paths: TreePaths) -> ScopeResolution:
    res = ScopeResolution()
    for binding in BindingType:
        res.classification[binding.value] = 0

    # Namespace expansion: a translator bound to a container reaches all of it.
    namespaces = sorted(
        {
            u.namespace
            for u in usages
            if u.binding_type is BindingType.BOUND_SCOPED and u.namespace
        }
    )
    for ns in namespaces:
        if ns not in paths.containers:
            continue
        children = paths.children_of(ns)
        res.universe.update(children)
        res.namespace_expansions[ns] = len(children)
        _logger.debug(
            "Namespace binding %r: %d children marked used", ns, len(children)
        )

    raw_keys = {u.key for u in usages}
    for u in usages:
        res.classification[u.binding_type.value] += 1
        if u.key in paths.containers:
            children = paths.children_of(u.key)
            res.universe.update(children)
            res.container_accesses[u.key] = len(children)
            if _has_extracted_children(u.key, raw_keys):
                res.filtered_keys.add(FilteredKey(u.key, CONTAINER_WITH_CHILDREN))
            _logger.debug(
                "Container access %r at %s:%d: %d children marked used",
                u.key,
                u.file,
                u.line,
                len(children),
            )
            continue
        if u.binding_type is BindingType.UNKNOWN_SCOPED:
            res.fragments.append(u)
            continue
        res.universe.add(u.key)
        res.literal_records.append(u)
    return res
