import json

import pytest

from config import settings
from config.project import ProjectConfigError, detect_project_context


def _config(tmp_path, data):
    (tmp_path / "i18n.config.json").write_text(json.dumps(data), encoding="utf-8")


def test_detects_config_in_root(tmp_path):
    _config(
        tmp_path,
        {
            "workspaceId": "acme",
            "projectSlug": "dashboard",
            "defaultLocale": "de",
            "cdnBaseUrl": "https://cdn.example.com/",
            "lint": {"include": ["src"], "exclude": ["src/legacy"]},
        },
    )
    ctx = detect_project_context(tmp_path)
    assert ctx.label == "acme/dashboard"
    assert ctx.default_locale == "de"
    assert ctx.cdn_base_url == "https://cdn.example.com"
    assert (ctx.include, ctx.exclude) == (["src"], ["src/legacy"])


def test_defaults_apply(tmp_path):
    _config(tmp_path, {"workspaceId": "acme", "projectSlug": "dashboard"})
    ctx = detect_project_context(tmp_path)
    assert ctx.default_locale == settings.DEFAULT_LOCALE
    assert ctx.cdn_base_url == settings.DEFAULT_CDN_BASE_URL
    assert ctx.include == [] and ctx.exclude == []


def test_parent_directories_are_not_searched(tmp_path):
    _config(tmp_path, {"workspaceId": "acme", "projectSlug": "dashboard"})
    nested = tmp_path / "packages" / "web"
    nested.mkdir(parents=True)
    assert detect_project_context(nested) is None


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2]", json.dumps({"workspaceId": "acme"}), json.dumps({"workspaceId": "", "projectSlug": "x"})],
)
def test_invalid_config_raises(tmp_path, content):
    (tmp_path / "i18n.config.json").write_text(content, encoding="utf-8")
    with pytest.raises(ProjectConfigError):
        detect_project_context(tmp_path)
