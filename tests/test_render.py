import json
import random

from domain.models import MissingKeyEntry
from reconcile import reconcile
from reporting.render import build_json_payload, render_text, render_tree
from reporting.verify import verify_unused_keys
from services.sync import SyncOutcome
from tests.factories import bound, dynamic, fragment, root

TREE = {
    "plans": {"free": {"name": "Free"}, "pro": {"name": "Pro"}},
    "auth": {"login": {"title": "Sign in", "submit": "Go"}},
    "legal": {"terms": "Terms"},
}


def _outcome(usages, tree=TREE, **kwargs) -> SyncOutcome:
    return SyncOutcome(
        project="acme/dashboard",
        source_locale="en",
        files_scanned=3,
        usages=usages,
        local_namespaces={},
        report=reconcile(usages, tree, **kwargs) if tree is not None else None,
    )


USAGES = [dynamic("plans.${p}.name", file="pricing.py", line=4), root("auth.login.title"), root("auth.signup.cta")]


def test_full_text_report_sections():
    text = render_text(_outcome(USAGES))
    assert text.startswith("Translation keys comparison")
    assert "Local -> Remote: 60%" in text
    assert "Remote used: 60%" in text
    assert "Missing in remote (2 keys)" in text
    assert "  signup (cta)" in text
    assert "  ${p} (name)" in text
    assert "Used via dynamic patterns (2 keys)" in text
    assert "    at pricing.py:4" in text
    assert "Possibly unused (2 keys)" in text
    assert "  auth.login.submit" in text
    assert text.rstrip().endswith("Comparison complete")


def test_check_filter_and_summary():
    unused_only = render_text(_outcome(USAGES), check="unused")
    assert "Missing in remote" not in unused_only
    assert "Local -> Remote" not in unused_only
    summary = render_text(_outcome(USAGES), summary=True)
    assert "Possibly unused" not in summary
    assert summary.endswith("Summary report complete")


def test_verbose_audit_and_review_bucket():
    usages = USAGES + [root("plans.free.name")]
    text = render_text(_outcome(usages, review_dynamic=True), verbose=True)
    assert "Local invariant: PASS" in text
    assert "  - root-scoped: 4" in text
    assert "Needs review, matched only by dynamic patterns (1 keys)" in text
    assert "  plans.pro.name" in text


def test_verbose_audit_shows_how_the_universe_was_widened():
    usages = [bound("legal", "imprint"), root("auth.login"), fragment("title"), fragment("nowhere")]
    text = render_text(_outcome(usages), verbose=True)
    assert "  - Namespace legal: 1 keys via binding" in text
    assert "  - Container auth.login: 2 keys via direct access" in text
    assert "  - Fragments: 1 unique, 0 ambiguous, 1 unresolved" in text


def test_compact_tree_prints_single_segment_keys_verbatim():
    lines = render_tree({"nowhere": [MissingKeyEntry("nowhere", "nowhere")]})
    assert lines == ["nowhere (1)", "  nowhere", ""]


def test_local_only_text():
    outcome = _outcome([root("a.b")], tree=None)
    outcome.local_namespaces = {"a": ["a.b"]}
    text = render_text(outcome)
    assert text.startswith("Local translation keys")
    assert "Found 1 keys in 1 namespaces" in text


def test_render_tree_orders_largest_namespace_first():
    lines = render_tree({"b": ["b.x.one"], "a": ["a.x.one", "a.y.two"]})
    assert lines[0] == "a (2)"
    assert lines[lines.index("") + 1] == "b (1)"


def test_json_payload_shape():
    payload = build_json_payload(_outcome(USAGES))
    json.dumps(payload)
    assert payload["project"] == {"workspace": "acme", "slug": "dashboard", "sourceLocale": "en"}
    assert payload["remoteKeys"] == {"total": 5}
    comparison = payload["comparison"]
    assert comparison["missingInRemote"] == {
        "auth": [{"key": "auth.signup.cta", "value": "auth.signup.cta"}],
        "plans": [{"key": "plans.${p}.name", "value": "plans.${p}.name"}],
    }
    assert comparison["usedViaDynamicPatterns"] == [
        {
            "pattern": "plans.${p}.name",
            "file": "pricing.py",
            "line": 4,
            "matchCount": 2,
            "examples": ["plans.free.name", "plans.pro.name"],
        }
    ]
    assert comparison["possiblyUnusedCount"] == 2
    assert payload["coverage"] == {"local": 60, "remote": 60}
    assert payload["invariants"] == {"local": True, "remote": True}


def test_verify_unused_keys_counts_matching_lines(tmp_path):
    (tmp_path / "a.py").write_text("label = 'submit'\nother = 'submit again'\n", encoding="utf-8")
    (tmp_path / "b.ts").write_text("const x = 1;\n", encoding="utf-8")
    results = verify_unused_keys(
        {"auth": ["auth.login.submit"], "legal": ["legal.terms"]}, tmp_path, rng=random.Random(1)
    )
    by_key = {r.key: r for r in results}
    assert by_key["auth.login.submit"].found and by_key["auth.login.submit"].count == 2
    assert not by_key["legal.terms"].found
    assert verify_unused_keys({}, tmp_path) == []
