"""Text and JSON presentation of a sync outcome.

Pure formatting over :class:`services.sync.SyncOutcome`; nothing here changes
what the engine decided. ``check`` narrows the output to the missing side, the
unused side, or both.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from domain.models import MissingKeyEntry, SyncReport
from reporting.verify import VerificationResult
from services.sync import SyncOutcome

__all__ = ["CHECK_CHOICES", "render_text", "build_json_payload", "render_tree"]

CHECK_CHOICES = ("missing", "unused", "both")
UNUSED_PER_NAMESPACE = 15
LEAVES_PER_GROUP = 40
PATTERN_EXAMPLES = 5
FILTERED_DISPLAY_LIMIT = 10


def _by_size(groups: Mapping[str, Sequence[Any]]) -> List[str]:
    return sorted(groups, key=lambda ns: (-len(groups[ns]), ns))


def render_tree(
    groups: Mapping[str, Sequence[Any]], *, full_paths: bool = False
) -> List[str]:
    """Render namespace groups, largest first.

    Compact mode groups keys by their second segment and lists the remaining
    suffixes; full-path mode lists up to 15 sorted keys per namespace.
    """
    lines: List[str] = []
    for ns in _by_size(groups):
        items = groups[ns]
        keys = [i.key if isinstance(i, MissingKeyEntry) else i for i in items]
        lines.append(f"{ns} ({len(keys)})")
        if full_paths:
            ordered = sorted(keys)
            lines.extend(f"  {k}" for k in ordered[:UNUSED_PER_NAMESPACE])
            if len(ordered) > UNUSED_PER_NAMESPACE:
                lines.append(f"  ... and {len(ordered) - UNUSED_PER_NAMESPACE} more")
        else:
            level2: Dict[str, List[str]] = {}
            depth = len(ns.split("."))
            for key in keys:
                parts = key.split(".")
                if len(parts) <= depth:
                    lines.append(f"  {key}")
                    continue
                suffix = ".".join(parts[depth + 1 :]) or parts[depth]
                level2.setdefault(parts[depth], []).append(suffix)
            for sub in _by_size(level2):
                leaves = level2[sub]
                shown = ", ".join(leaves[:LEAVES_PER_GROUP])
                more = f", ...+{len(leaves) - LEAVES_PER_GROUP}" if len(leaves) > LEAVES_PER_GROUP else ""
                lines.append(f"  {sub} ({shown}{more})")
        lines.append("")
    return lines


def _audit_lines(report: SyncReport, verification: Optional[Sequence[VerificationResult]]) -> List[str]:
    lines = ["Invariant audit:"]
    lines.append(f"  Local invariant: {'PASS' if report.invariants.local else 'FAIL'}")
    lines.append(f"  Remote invariant: {'PASS' if report.invariants.remote else 'FAIL'}")
    lines.append(f"  Intersection: {report.intersection_count}")
    lines.append("")
    lines.append("Scoping summary:")
    for binding, count in report.classification.items():
        if count > 0:
            lines.append(f"  - {binding}: {count}")
    scoping = report.scoping
    for ns, count in scoping.namespace_expansions.items():
        lines.append(f"  - Namespace {ns}: {count} keys via binding")
    for key, count in scoping.container_accesses.items():
        lines.append(f"  - Container {key}: {count} keys via direct access")
    fuzzy_total = scoping.fuzzy_unique + scoping.fuzzy_ambiguous + scoping.fuzzy_unresolved
    if fuzzy_total:
        lines.append(
            f"  - Fragments: {scoping.fuzzy_unique} unique, {scoping.fuzzy_ambiguous} ambiguous, "
            f"{scoping.fuzzy_unresolved} unresolved"
        )
    if report.scan_stats is not None:
        s = report.scan_stats
        lines.append("")
        lines.append("Scan details:")
        lines.append(f"  - Root-scoped translators: {s.root_scoped_translators}")
        lines.append(f"  - Unbound translators: {s.unbound_translators}")
        lines.append(f"  - Dynamic namespaces: {s.dynamic_namespaces}")
        lines.append(f"  - Dynamic keys: {s.dynamic_keys}")
    if report.filtered_keys:
        lines.append("")
        lines.append("Filtered keys (not added to local):")
        for f in report.filtered_keys[:FILTERED_DISPLAY_LIMIT]:
            lines.append(f"  - {f.key} ({f.reason})")
        if len(report.filtered_keys) > FILTERED_DISPLAY_LIMIT:
            lines.append(f"  ... and {len(report.filtered_keys) - FILTERED_DISPLAY_LIMIT} more")
    if verification:
        lines.append("")
        lines.append("Unused verification sample:")
        for res in verification:
            status = f"FOUND ({res.count} times)" if res.found else "NOT FOUND"
            lines.append(f"  - {res.key}: {status}")
    lines.append("")
    return lines


def _local_only(outcome: SyncOutcome) -> List[str]:
    lines = ["Local translation keys", ""]
    for ns, keys in outcome.local_namespaces.items():
        lines.append(f"  {ns}: {len(keys)} keys")
    lines.append("")
    lines.append(
        f"Found {len(outcome.usages)} keys in {len(outcome.local_namespaces)} namespaces"
    )
    lines.append(f"Scanned {outcome.files_scanned} files in {outcome.duration:.2f}s")
    return lines


def render_text(
    outcome: SyncOutcome,
    *,
    check: str = "both",
    summary: bool = False,
    verbose: bool = False,
    verification: Optional[Sequence[VerificationResult]] = None,
) -> str:
    report = outcome.report
    if report is None:
        return "\n".join(_local_only(outcome))
    show_missing = check in ("missing", "both")
    show_unused = check in ("unused", "both")

    lines = ["Translation keys comparison", f"Source locale: {outcome.source_locale}", ""]
    lines.append("Coverage:")
    if show_missing:
        lines.append(f"  Local -> Remote: {report.local_coverage}% (keys in code that exist in remote)")
    if show_unused:
        lines.append(f"  Remote used: {report.remote_coverage}% (remote keys detected in code)")
    lines.append("")
    if not report.invariants.ok:
        lines.append("WARNING: reconciliation invariants failed; counts below are unreliable")
        lines.append("")

    if verbose:
        lines.extend(_audit_lines(report, verification))

    if summary:
        lines.append(f"Scanned {outcome.files_scanned} files in {outcome.duration:.2f}s")
        lines.append("Summary report complete")
        return "\n".join(lines)

    if show_missing:
        if report.missing_count:
            lines.append(f"Missing in remote ({report.missing_count} keys)")
            lines.append("  Keys used in code but not uploaded")
            lines.append("")
            lines.extend(render_tree(report.missing))
        else:
            lines.append("All local keys exist in remote")
            lines.append("")

    if show_unused and report.dynamic_pattern_matches:
        lines.append(f"Used via dynamic patterns ({report.dynamic_match_count} keys)")
        lines.append("")
        for m in report.dynamic_pattern_matches:
            lines.append(f"  {m.pattern} ({len(m.matched_keys)} keys)")
            lines.append(f"    at {m.file}:{m.line}")
            for key in m.matched_keys[:PATTERN_EXAMPLES]:
                lines.append(f"       -> {key}")
            if len(m.matched_keys) > PATTERN_EXAMPLES:
                lines.append(f"       ... and {len(m.matched_keys) - PATTERN_EXAMPLES} more")
            lines.append("")
        lines.append("  WARNING: do not delete these keys without manual verification;")
        lines.append("  pattern matching cannot prove every key is reachable.")
        lines.append("")

    if show_unused:
        if report.dynamic_review_count:
            lines.append(f"Needs review, matched only by dynamic patterns ({report.dynamic_review_count} keys)")
            lines.append("")
            lines.extend(render_tree(report.dynamic_review_required, full_paths=True))
        if report.unused_count:
            lines.append(f"Possibly unused ({report.unused_count} keys)")
            lines.append("  Static keys not detected in code")
            lines.append("")
            lines.extend(render_tree(report.unused, full_paths=True))
        else:
            lines.append("No obviously unused keys detected")
            lines.append("")

    lines.append(f"Scanned {outcome.files_scanned} files in {outcome.duration:.2f}s")
    lines.append("Comparison complete")
    return "\n".join(lines)


def build_json_payload(outcome: SyncOutcome) -> Dict[str, Any]:
    project: Optional[Dict[str, Any]] = None
    if outcome.project:
        workspace, _, slug = outcome.project.partition("/")
        project = {"workspace": workspace, "slug": slug, "sourceLocale": outcome.source_locale}
    report = outcome.report
    if report is None:
        return {
            "project": project,
            "localKeys": {
                "total": len(outcome.usages),
                "namespaces": outcome.local_namespaces,
            },
            "files": outcome.files_scanned,
            "warnings": list(outcome.warnings),
            "duration": round(outcome.duration, 3),
        }
    return {
        "project": project,
        "localKeys": {"total": report.local_total, "namespaces": outcome.local_namespaces},
        "remoteKeys": {"total": report.remote_total},
        "comparison": {
            "missingInRemote": report.to_dict()["missing"],
            "missingCount": report.missing_count,
            "usedViaDynamicPatterns": [
                {
                    "pattern": m.pattern,
                    "file": m.file,
                    "line": m.line,
                    "matchCount": len(m.matched_keys),
                    "examples": list(m.matched_keys[:PATTERN_EXAMPLES]),
                }
                for m in report.dynamic_pattern_matches
            ],
            "dynamicMatchCount": report.dynamic_match_count,
            "dynamicReviewRequired": {
                ns: list(keys) for ns, keys in report.dynamic_review_required.items()
            },
            "possiblyUnused": {ns: list(keys) for ns, keys in report.unused.items()},
            "possiblyUnusedCount": report.unused_count,
        },
        "coverage": {"local": report.local_coverage, "remote": report.remote_coverage},
        "invariants": {"local": report.invariants.local, "remote": report.invariants.remote},
        "files": outcome.files_scanned,
        "warnings": list(outcome.warnings),
        "duration": round(outcome.duration, 3),
    }
