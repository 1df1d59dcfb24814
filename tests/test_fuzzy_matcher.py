from reconcile import MatchKind, match_fragment, resolve_fragment
from reconcile.fuzzy import resolve_fragments
from tests.factories import fragment


def test_unique_suffix_match():
    res = resolve_fragment("submit", {"auth.signup.submit"})
    assert res.kind is MatchKind.UNIQUE
    assert res.keys == ("auth.signup.submit",)


def test_bare_suffix_requires_dot_boundary():
    assert match_fragment("name", {"user.surname"}) == []
    assert match_fragment("name", {"user.name", "user.surname"}) == ["user.name"]


def test_exact_and_dotted_fragment():
    leaves = {"login.title", "auth.login.title", "xlogin.title"}
    assert match_fragment("login.title", leaves) == ["auth.login.title", "login.title"]


def test_ambiguous_fragment_contributes_all_matches():
    res = resolve_fragment("title", {"auth.login.title", "auth.signup.title"})
    assert res.kind is MatchKind.AMBIGUOUS
    assert res.keys == ("auth.login.title", "auth.signup.title")


def test_unresolved_fragment_is_kept_verbatim():
    res = resolve_fragment("nowhere", {"auth.login.title"})
    assert res.kind is MatchKind.UNRESOLVED
    assert res.keys == ("nowhere",)


def test_resolve_fragments_tracks_unresolved_records():
    records = [fragment("title", line=1), fragment("ghost", line=2), fragment("ghost", line=9)]
    result = resolve_fragments(records, {"auth.login.title"})
    assert result.keys == {"auth.login.title", "ghost"}
    assert [r.line for r in result.unresolved_records] == [2, 9]
    assert set(result.resolutions) == {"title", "ghost"}
