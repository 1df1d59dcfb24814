"""Structural matching of dynamic key templates.

A template such as ``plans.${plan}.name`` is compiled segment by segment:
literal segments must be equal, and a segment holding a ``${...}`` marker
matches exactly one non-empty key segment, optionally with literal text around
it (``status_${s}``). Several markers in one segment each take at least one
character and the literal text between them must appear in order. Keys must
have the same number of segments as the template, so a wildcard never spans a
dot.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Set, Tuple

from domain.models import KeyUsageRecord, PatternMatch

__all__ = ["CompiledPattern", "PatternResult", "compile_pattern", "match_patterns"]

_logger = logging.getLogger(__name__)

MARKER_OPEN = "${"
MARKER_CLOSE = "}"
_SENTINEL = "\x00"


@dataclass(frozen=True, slots=True)
class _Segment:
    literal: Optional[str]
    regex: Optional[Pattern[str]] = None

    def matches(self, segment: str) -> bool:
        if self.literal is not None:
            return segment == self.literal
        return self.regex.fullmatch(segment) is not None


@dataclass(frozen=True)
class CompiledPattern:
    template: str
    segments: Tuple[_Segment, ...]

    def matches(self, key: str) -> bool:
        parts = key.split(".")
        if len(parts) != len(self.segments):
            return False
        return all(seg.matches(part) for seg, part in zip(self.segments, parts))


def _strip_markers(template: str) -> str:
    """Replace every ``${...}`` marker with a single sentinel character."""
    out: List[str] = []
    pos = 0
    while True:
        start = template.find(MARKER_OPEN, pos)
        if start < 0:
            out.append(template[pos:])
            break
        end = template.find(MARKER_CLOSE, start + len(MARKER_OPEN))
        if end < 0:
            out.append(template[pos:])
            break
        out.append(template[pos:start])
        out.append(_SENTINEL)
        pos = end + len(MARKER_CLOSE)
    return "".join(out)


def compile_pattern(template: str) -> CompiledPattern:
    segments: List[_Segment] = []
    for raw in _strip_markers(template).split("."):
        if _SENTINEL not in raw:
            segments.append(_Segment(literal=raw))
            continue
        pieces = [re.escape(p) for p in raw.split(_SENTINEL)]
        segments.append(_Segment(literal=None, regex=re.compile(".+?".join(pieces))))
    return CompiledPattern(template, tuple(segments))


@dataclass
class PatternResult:
    keys: Set[str] = field(default_factory=set)
    entries: List[PatternMatch] = field(default_factory=list)


def match_patterns(records: Sequence[KeyUsageRecord], leaves: Iterable[str]) -> PatternResult:
    """Match every dynamic record against the remote leaves.

    One audit entry per record, including records that matched nothing.
    """
    leaf_list = sorted(leaves)
    by_template: Dict[str, Tuple[str, ...]] = {}
    result = PatternResult()
    for rec in records:
        template = rec.pattern or rec.key
        matched = by_template.get(template)
        if matched is None:
            compiled = compile_pattern(template)
            matched = tuple(k for k in leaf_list if compiled.matches(k))
            by_template[template] = matched
            _logger.debug("Pattern %r matched %d keys", template, len(matched))
        result.keys.update(matched)
        result.entries.append(PatternMatch(template, rec.file, rec.line, matched))
    result.entries.sort(key=lambda m: (m.pattern, m.file, m.line))
    return result
