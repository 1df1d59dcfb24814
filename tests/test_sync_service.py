import json

import pytest

from parsing.errors import PayloadShapeError
from services.sync import SyncOptions, resolve_context, run_sync
from tests.factories import SAMPLE_MANIFEST, make_store

TREE = {
    "auth": {"login": {"title": "Sign in", "submit": "Go"}},
    "common": {"save": "Save"},
}
ROUTES = {
    "/acme/dashboard/manifest.json": SAMPLE_MANIFEST,
    "/acme/dashboard/translations/en.json": TREE,
}


def _project(tmp_path, source: str) -> None:
    (tmp_path / "i18n.config.json").write_text(
        json.dumps({"workspaceId": "acme", "projectSlug": "dashboard"}), encoding="utf-8"
    )
    (tmp_path / "app.py").write_text(source, encoding="utf-8")


def test_run_sync_compares_against_remote(tmp_path):
    _project(tmp_path, 't = get_translator("auth")\nt("login.title")\nt("login.forgot")\n')
    outcome = run_sync(SyncOptions(root_dir=str(tmp_path)), store_factory=lambda ctx: make_store(ROUTES))
    assert outcome.compared
    assert outcome.project == "acme/dashboard"
    assert outcome.source_locale == "en"
    assert outcome.files_scanned == 1
    assert outcome.warnings == []
    report = outcome.report
    # namespace expansion marks every auth.* leaf as used
    assert report.intersection_count == 2
    assert [e.key for e in report.missing["auth"]] == ["auth.login.forgot"]
    assert report.unused == {"common": ("common.save",)}


def test_usages_file_replaces_extraction(tmp_path):
    _project(tmp_path, "")
    usages = tmp_path / "usages.json"
    usages.write_text(
        json.dumps(
            [
                {"key": "common.save", "bindingType": "root-scoped", "file": "x.tsx", "line": 1},
                {"key": "auth.${k}", "bindingType": "root-scoped", "isDynamic": True, "file": "y.tsx", "line": 2},
            ]
        ),
        encoding="utf-8",
    )
    outcome = run_sync(
        SyncOptions(root_dir=str(tmp_path), usages_path=str(usages)),
        store_factory=lambda ctx: make_store(ROUTES),
    )
    assert outcome.files_scanned == 2
    assert outcome.scan_stats.dynamic_keys == 1
    # "auth.${k}" is a single segment wildcard so it does not reach auth.login.*
    assert outcome.report.unused_count == 2


def test_without_config_only_local_keys_are_reported(tmp_path):
    (tmp_path / "app.py").write_text('t("auth.login.title")\n', encoding="utf-8")

    def fail(ctx):
        raise AssertionError("store must not be created without a project")

    outcome = run_sync(SyncOptions(root_dir=str(tmp_path)), store_factory=fail)
    assert not outcome.compared
    assert outcome.project is None
    assert outcome.local_namespaces == {"auth": ["auth.login.title"]}
    assert outcome.warnings == ["No i18n.config.json found, using defaults"]


def test_manifest_failure_is_a_warning(tmp_path):
    _project(tmp_path, 't("common.save")\n')
    outcome = run_sync(
        SyncOptions(root_dir=str(tmp_path)), store_factory=lambda ctx: make_store({}, retries=0)
    )
    assert not outcome.compared
    assert len(outcome.warnings) == 1
    assert outcome.warnings[0].startswith("Could not fetch manifest:")
    assert outcome.local_namespaces == {"common": ["common.save"]}


def test_translations_failure_is_a_warning(tmp_path):
    _project(tmp_path, 't("common.save")\n')
    routes = {"/acme/dashboard/manifest.json": SAMPLE_MANIFEST}
    outcome = run_sync(
        SyncOptions(root_dir=str(tmp_path)), store_factory=lambda ctx: make_store(routes, retries=0)
    )
    assert outcome.manifest is not None
    assert not outcome.compared
    assert outcome.warnings[0].startswith("Failed to fetch remote keys:")


def test_explicit_overrides_create_a_context(tmp_path):
    ctx = resolve_context(
        SyncOptions(root_dir=str(tmp_path), workspace_id="w", project_slug="p", cdn_base_url="https://x/")
    )
    assert ctx.label == "w/p"
    assert ctx.cdn_base_url == "https://x"


def test_store_is_closed_when_usage_loading_fails(tmp_path):
    _project(tmp_path, "")
    bad = tmp_path / "scan.json"
    bad.write_text(json.dumps({"unexpected": True}), encoding="utf-8")
    stores = []

    def factory(ctx):
        stores.append(make_store(ROUTES))
        return stores[-1]

    with pytest.raises(PayloadShapeError):
        run_sync(SyncOptions(root_dir=str(tmp_path), usages_path=str(bad)), store_factory=factory)
    assert stores[0]._client.is_closed
