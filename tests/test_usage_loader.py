import json

import pytest

from domain.models import BindingType
from parsing.errors import InvalidBindingTypeError, MissingFieldError, PayloadShapeError
from parsing.usage_loader import load_usages, parse_usages, record_from_mapping

RECORDS = [
    {"key": "auth.login.title", "bindingType": "bound-scoped", "namespace": "auth", "file": "a.tsx", "line": 3},
    {"key": "plans.${plan}.name", "bindingType": "root-scoped", "isDynamic": True, "file": "p.tsx", "line": 9},
    {"text": "Hardcoded label", "file": "a.tsx", "line": 12},
]


def test_parse_list_and_skip_hardcoded_findings():
    usages = parse_usages(RECORDS)
    assert [u.key for u in usages] == ["auth.login.title", "plans.${plan}.name"]
    assert usages[0].binding_type is BindingType.BOUND_SCOPED
    assert usages[0].namespace == "auth"
    # dynamic records without an explicit pattern use the key as template
    assert usages[1].is_dynamic and usages[1].pattern == "plans.${plan}.name"


def test_parse_issues_wrapper():
    assert len(parse_usages({"issues": RECORDS})) == 2
    assert len(parse_usages({"usages": RECORDS[:1]})) == 1


def test_snake_case_fields_are_accepted():
    rec = record_from_mapping({"key": "x.y", "binding_type": "unbound", "is_dynamic": False})
    assert rec.binding_type is BindingType.UNBOUND
    assert rec.pattern is None


def test_invalid_binding_type_points_at_the_record():
    with pytest.raises(InvalidBindingTypeError) as exc:
        parse_usages([{"key": "x", "bindingType": "global", "file": "f.ts", "line": 4}])
    assert (exc.value.index, exc.value.file, exc.value.line) == (0, "f.ts", 4)
    assert str(exc.value).endswith("(record #0, f.ts:4)")


def test_missing_binding_type_is_an_error():
    with pytest.raises(MissingFieldError):
        record_from_mapping({"key": "x"})


@pytest.mark.parametrize("document", ["nope", 42, {"other": []}, [["not", "an", "object"]]])
def test_unsupported_shapes(document):
    with pytest.raises(PayloadShapeError):
        parse_usages(document)


def test_load_json_and_jsonl(tmp_path):
    as_json = tmp_path / "usages.json"
    as_json.write_text(json.dumps({"issues": RECORDS}), encoding="utf-8")
    as_lines = tmp_path / "usages.jsonl"
    as_lines.write_text("\n".join(json.dumps(r) for r in RECORDS) + "\n\n", encoding="utf-8")
    assert load_usages(as_json) == load_usages(as_lines)
    assert len(load_usages(as_lines)) == 2
