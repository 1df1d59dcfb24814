"""Flatten a hierarchical translation tree into leaf and container paths."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Set


@dataclass(frozen=True)
class TreePaths:
    leaves: FrozenSet[str]
    containers: FrozenSet[str]

    def children_of(self, prefix: str) -> List[str]:
        """Sorted leaves strictly below ``prefix``."""
        needle = prefix + "."
        return sorted(k for k in self.leaves if k.startswith(needle))


def _is_container(value: Any) -> bool:
    return isinstance(value, Mapping)


def flatten_tree(tree: Mapping[str, Any]) -> TreePaths:
    """Depth-first walk; primitives and lists are leaves, mappings recurse.

    A mapping path is a container only when at least one leaf sits below it,
    so an empty ``{}`` node is neither leaf nor container.
    """
    leaves: Set[str] = set()
    containers: Set[str] = set()

    def walk(node: Mapping[str, Any], prefix: str) -> bool:
        found = False
        for key, value in node.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            if _is_container(value):
                if walk(value, path):
                    containers.add(path)
                    found = True
            else:
                leaves.add(path)
                found = True
        return found

    walk(tree, "")
    return TreePaths(leaves=frozenset(leaves), containers=frozenset(containers - leaves))


def namespace_of(key: str) -> str:
    """First dot segment, ``"default"`` when that segment is empty."""
    return key.split(".", 1)[0] or "default"


def group_keys_by_namespace(keys: Iterable[str]) -> Dict[str, List[str]]:
    """Group local keys for display; single-segment keys go to ``"default"``."""
    grouped: Dict[str, Set[str]] = {}
    for k in keys:
        ns = k.split(".", 1)[0] if "." in k else "default"
        grouped.setdefault(ns, set()).add(k)
    return {ns: sorted(grouped[ns]) for ns in sorted(grouped)}
