"""Suffix matching for key fragments of unknown scope.

A fragment such as ``"submit"`` written against a translator whose namespace
could not be determined is matched against every remote leaf:

1. exact: ``leaf == fragment``
2. dot-boundary suffix: ``leaf.endswith("." + fragment)``
3. bare suffix (dotless fragments only): ``leaf.endswith(fragment)`` and the
   character before the match is a dot, so ``"name"`` never hits ``"surname"``.

One match resolves the fragment to that leaf. Several matches are ambiguous and
all of them count as used. No match keeps the fragment itself, which then
surfaces as missing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Set, Tuple

from domain.models import KeyUsageRecord

__all__ = [
    "MatchKind",
    "FragmentResolution",
    "FuzzyResult",
    "match_fragment",
    "resolve_fragment",
    "resolve_fragments",
]

_logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    UNRESOLVED = "unresolved"


@dataclass(frozen=True, slots=True)
class FragmentResolution:
    fragment: str
    kind: MatchKind
    matches: Tuple[str, ...]

    @property
    def keys(self) -> Tuple[str, ...]:
        """Keys this fragment contributes to the local universe."""
        return self.matches if self.matches else (self.fragment,)


@dataclass
class FuzzyResult:
    keys: Set[str] = field(default_factory=set)
    resolutions: Dict[str, FragmentResolution] = field(default_factory=dict)
    unresolved_records: List[KeyUsageRecord] = field(default_factory=list)


def _matches(fragment: str, leaf: str) -> bool:
    if leaf == fragment:
        return True
    if leaf.endswith("." + fragment):
        return True
    if "." not in fragment and leaf.endswith(fragment):
        before = leaf[: len(leaf) - len(fragment)]
        return before.endswith(".")
    return False


def match_fragment(fragment: str, leaves: Iterable[str]) -> List[str]:
    return sorted(leaf for leaf in leaves if _matches(fragment, leaf))


def resolve_fragment(fragment: str, leaves: Iterable[str]) -> FragmentResolution:
    found = match_fragment(fragment, leaves)
    if len(found) == 1:
        kind = MatchKind.UNIQUE
    elif found:
        kind = MatchKind.AMBIGUOUS
    else:
        kind = MatchKind.UNRESOLVED
    return FragmentResolution(fragment, kind, tuple(found))


def resolve_fragments(
    records: Sequence[KeyUsageRecord], leaves: Iterable[str]
) -> FuzzyResult:
    leaf_list = sorted(leaves)
    result = FuzzyResult()
    for rec in records:
        resolution = result.resolutions.get(rec.key)
        if resolution is None:
            resolution = resolve_fragment(rec.key, leaf_list)
            result.resolutions[rec.key] = resolution
            if resolution.kind is MatchKind.UNIQUE:
                _logger.debug("Fuzzy matched %r -> %r", rec.key, resolution.matches[0])
            elif resolution.kind is MatchKind.AMBIGUOUS:
                _logger.debug(
                    "Ambiguous fragment %r (%d matches: %s)",
                    rec.key,
                    len(resolution.matches),
                    ", ".join(resolution.matches[:3]),
                )
            else:
                _logger.debug("No fuzzy match for fragment %r", rec.key)
        result.keys.update(resolution.keys)
        if resolution.kind is MatchKind.UNRESOLVED:
            result.unresolved_records.append(rec)
    return result
