"""Domain models for translation-key reconciliation."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class BindingType(str, Enum):
    """How the translator at a call site was obtained."""

    BOUND_SCOPED = "bound-scoped"
    ROOT_SCOPED = "root-scoped"
    UNKNOWN_SCOPED = "unknown-scoped"
    UNBOUND = "unbound"


@dataclass(frozen=True, slots=True)
class KeyUsageRecord:
    """One statically detected reference to a translation key.

    ``key`` is the text as resolved by the scanner: a full path for root or
    bound translators (bound keys already carry their namespace prefix), a
    fragment for unknown-scoped translators, or the template itself for
    dynamic keys. ``text`` is the literal written at the call site.
    """

    key: str
    binding_type: BindingType
    namespace: Optional[str] = None
    is_dynamic: bool = False
    pattern: Optional[str] = None
    file: str = ""
    line: int = 0
    text: str = ""


@dataclass(slots=True)
class ScanStats:
    dynamic_keys: int = 0
    dynamic_namespaces: int = 0
    unbound_translators: int = 0
    root_scoped_translators: int = 0

    def merge(self, other: "ScanStats") -> None:
        self.dynamic_keys += other.dynamic_keys
        self.dynamic_namespaces += other.dynamic_namespaces
        self.unbound_translators += other.unbound_translators
        self.root_scoped_translators += other.root_scoped_translators


@dataclass(frozen=True, slots=True)
class MissingKeyEntry:
    key: str
    value: str = ""


@dataclass(frozen=True, slots=True)
class PatternMatch:
    pattern: str
    file: str
    line: int
    matched_keys: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FilteredKey:
    key: str
    reason: str


@dataclass(frozen=True, slots=True)
class InvariantFlags:
    local: bool
    remote: bool

    @property
    def ok(self) -> bool:
        return self.local and self.remote


@dataclass(frozen=True, slots=True)
class ScopingSummary:
    """How the universe was widened beyond literal keys."""

    namespace_expansions: Dict[str, int] = field(default_factory=dict)
    container_accesses: Dict[str, int] = field(default_factory=dict)
    fuzzy_unique: int = 0
    fuzzy_ambiguous: int = 0
    fuzzy_unresolved: int = 0


@dataclass(frozen=True)
class SyncReport:
    """Immutable result of one reconciliation run.

    Every list is sorted and every mapping is built with sorted keys, so two
    runs over identical inputs serialise to identical output.
    """

    local_total: int
    remote_total: int
    intersection_count: int
    local_keys: Tuple[str, ...]
    remote_leaves: Tuple[str, ...]
    missing: Dict[str, Tuple[MissingKeyEntry, ...]]
    unused: Dict[str, Tuple[str, ...]]
    dynamic_review_required: Dict[str, Tuple[str, ...]]
    dynamic_pattern_matches: Tuple[PatternMatch, ...]
    classification: Dict[str, int]
    filtered_keys: Tuple[FilteredKey, ...]
    local_coverage: int
    remote_coverage: int
    invariants: InvariantFlags
    scoping: ScopingSummary = field(default_factory=ScopingSummary)
    scan_stats: Optional[ScanStats] = field(default=None, compare=False)

    @property
    def missing_count(self) -> int:
        return sum(len(v) for v in self.missing.values())

    @property
    def unused_count(self) -> int:
        return sum(len(v) for v in self.unused.values())

    @property
    def dynamic_review_count(self) -> int:
        return sum(len(v) for v in self.dynamic_review_required.values())

    @property
    def dynamic_match_count(self) -> int:
        return sum(len(m.matched_keys) for m in self.dynamic_pattern_matches)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "localTotal": self.local_total,
            "remoteTotal": self.remote_total,
            "intersectionCount": self.intersection_count,
            "missing": {
                ns: [{"key": e.key, "value": e.value} for e in entries]
                for ns, entries in self.missing.items()
            },
            "missingCount": self.missing_count,
            "unused": {ns: list(keys) for ns, keys in self.unused.items()},
            "unusedCount": self.unused_count,
            "dynamicReviewRequired": {
                ns: list(keys) for ns, keys in self.dynamic_review_required.items()
            },
            "dynamicPatternMatches": [
                {
                    "pattern": m.pattern,
                    "file": m.file,
                    "line": m.line,
                    "matchedKeys": list(m.matched_keys),
                }
                for m in self.dynamic_pattern_matches
            ],
            "classification": dict(self.classification),
            "filteredKeys": [{"key": f.key, "reason": f.reason} for f in self.filtered_keys],
            "coverage": {"local": self.local_coverage, "remote": self.remote_coverage},
            "invariants": {"local": self.invariants.local, "remote": self.invariants.remote},
            "scoping": {
                "namespaceExpansions": dict(self.scoping.namespace_expansions),
                "containerAccesses": dict(self.scoping.container_accesses),
                "fuzzy": {
                    "unique": self.scoping.fuzzy_unique,
                    "ambiguous": self.scoping.fuzzy_ambiguous,
                    "unresolved": self.scoping.fuzzy_unresolved,
                },
            },
            "scanStats": asdict(self.scan_stats) if self.scan_stats is not None else None,
        }
