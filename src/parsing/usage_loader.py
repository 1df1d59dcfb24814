"""Load key-usage records produced by an external source scanner.

Accepted documents:
 - a JSON array of record objects;
 - a JSON object with an ``issues`` (or ``usages``) array, the shape the scan
   command emits with ``--format json``;
 - JSON Lines, one record object per line (``.jsonl`` / ``.ndjson``).

Record fields use the scanner's camelCase names (``bindingType``,
``isDynamic``); snake_case spellings are accepted too. Records without a
``key`` are skipped when they are plain hardcoded-string findings (no
``bindingType``), matching how the scanner mixes both kinds in one stream.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from domain.models import BindingType, KeyUsageRecord
from .errors import InvalidBindingTypeError, MissingFieldError, PayloadShapeError

__all__ = ["load_usages", "parse_usages", "record_from_mapping"]

_BINDING_VALUES = {b.value: b for b in BindingType}


def _field(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def record_from_mapping(data: Mapping[str, Any], *, index: int = 0) -> KeyUsageRecord:
    where = {"index": index, "file": data.get("file"), "line": data.get("line")}
    key = data.get("key")
    if not isinstance(key, str) or not key:
        raise MissingFieldError("Record has no non-empty 'key'", **where)
    raw_binding = _field(data, "bindingType", "binding_type")
    if raw_binding is None:
        raise MissingFieldError(f"Record for key {key!r} has no 'bindingType'", **where)
    binding = _BINDING_VALUES.get(raw_binding)
    if binding is None:
        raise InvalidBindingTypeError(
            f"Unknown bindingType {raw_binding!r} for key {key!r}", **where
        )
    is_dynamic = bool(_field(data, "isDynamic", "is_dynamic", False))
    pattern = data.get("pattern")
    if is_dynamic and not pattern:
        pattern = key
    return KeyUsageRecord(
        key=key,
        binding_type=binding,
        namespace=data.get("namespace") or None,
        is_dynamic=is_dynamic,
        pattern=pattern or None,
        file=str(data.get("file") or ""),
        line=int(data.get("line") or 0),
        text=str(data.get("text") or ""),
    )


def parse_usages(document: Any) -> List[KeyUsageRecord]:
    if isinstance(document, dict):
        items = document.get("issues", document.get("usages"))
        if not isinstance(items, list):
            raise PayloadShapeError("Expected an 'issues' or 'usages' array")
    elif isinstance(document, list):
        items = document
    else:
        raise PayloadShapeError(f"Unsupported usage document type: {type(document).__name__}")
    return _parse_items(items)


def _parse_items(items: Iterable[Any]) -> List[KeyUsageRecord]:
    records: List[KeyUsageRecord] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            raise PayloadShapeError("Record is not an object", index=idx)
        if not item.get("key") and _field(item, "bindingType", "binding_type") is None:
            continue  # hardcoded-string finding, not a key usage
        records.append(record_from_mapping(item, index=idx))
    return records


def load_usages(path: str | Path) -> List[KeyUsageRecord]:
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix in {".jsonl", ".ndjson"}:
        items = [json.loads(line) for line in text.splitlines() if line.strip()]
        return _parse_items(items)
    return parse_usages(json.loads(text))
