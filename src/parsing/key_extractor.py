"""Regex based key-usage extraction for Python sources.

Recognises:
  - translator bindings: ``t = get_translator("auth")`` (bound-scoped),
    ``t = get_translator()`` (root-scoped), ``t = get_translator(ns)``
    (namespace only known at runtime, treated as unknown-scoped);
  - calls on a translator: ``t("login.title")``; bound keys are prefixed with
    their namespace unless already qualified;
  - f-string keys: ``t(f"plans.{plan}.name")`` become dynamic records with the
    template ``plans.${plan}.name``;
  - calls on ``t``/``translate`` with no binding in the file (unbound) and on
    ``tAuth``-style names with no binding (unknown-scoped fragments).

Bindings are tracked per file in source order; a later assignment rebinds the
name for the calls that follow it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from domain.models import BindingType, KeyUsageRecord, ScanStats

__all__ = ["ExtractionResult", "extract_usages", "extract_file", "collect_files"]

_logger = logging.getLogger(__name__)

TRANSLATOR_FACTORIES = ("get_translator", "use_translations", "get_translations")
GLOBAL_TRANSLATORS = frozenset({"t", "translate"})
SKIP_DIRS = frozenset({"__pycache__", ".venv", "venv", ".git", "node_modules", "dist", "build"})

_RE_BINDING = re.compile(
    r"\b(?P<name>[A-Za-z_]\w*)\s*=\s*(?:\w+\.)?(?:%s)\(\s*(?P<arg>[^)]*?)\s*\)"
    % "|".join(TRANSLATOR_FACTORIES)
)
_RE_CALL = re.compile(
    r"(?<![\w.])(?P<name>[A-Za-z_]\w*)\(\s*(?P<prefix>[fF]?)(?P<q>['\"])(?P<body>.*?)(?P=q)"
)
_RE_LITERAL = re.compile(r"""^(['"])(?P<value>[^'"]*)\1$""")
_RE_FSTRING_FIELD = re.compile(r"\{([^{}]*)\}")
_RE_TRANSLATOR_NAME = re.compile(r"^t[A-Z]")


@dataclass
class ExtractionResult:
    usages: List[KeyUsageRecord] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)
    files_scanned: int = 0


@dataclass(slots=True)
class _Binding:
    type: BindingType
    namespace: Optional[str] = None


def _parse_binding(arg: str, stats: ScanStats) -> _Binding:
    if not arg:
        stats.root_scoped_translators += 1
        return _Binding(BindingType.ROOT_SCOPED)
    m = _RE_LITERAL.match(arg)
    if m is None:
        stats.dynamic_namespaces += 1
        return _Binding(BindingType.UNKNOWN_SCOPED)
    namespace = m.group("value")
    if not namespace:
        stats.root_scoped_translators += 1
        return _Binding(BindingType.ROOT_SCOPED)
    return _Binding(BindingType.BOUND_SCOPED, namespace)


def _fstring_to_pattern(body: str) -> Tuple[str, bool]:
    """Convert an f-string body to a ``${...}`` template.

    Returns the template and whether it contained any replacement field.
    """
    escaped = body.replace("{{", "\x00").replace("}}", "\x01")
    pattern, count = _RE_FSTRING_FIELD.subn(lambda m: "${%s}" % m.group(1).strip(), escaped)
    return pattern.replace("\x00", "{").replace("\x01", "}"), count > 0


def _qualify(key: str, binding: _Binding) -> str:
    if binding.type is BindingType.BOUND_SCOPED and binding.namespace:
        if not key.startswith(binding.namespace + "."):
            return f"{binding.namespace}.{key}"
    return key


def extract_file(path: Path, *, display_path: str | None = None) -> ExtractionResult:
    result = ExtractionResult(files_scanned=1)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _logger.warning("Skipping unreadable file %s: %s", path, e)
        return result
    file_label = display_path or str(path)
    events = [(m.start(), "bind", m) for m in _RE_BINDING.finditer(text)]
    events += [(m.start(), "call", m) for m in _RE_CALL.finditer(text)]
    events.sort(key=lambda e: e[0])

    bindings: Dict[str, _Binding] = {}
    for pos, kind, m in events:
        name = m.group("name")
        if kind == "bind":
            bindings[name] = _parse_binding(m.group("arg"), result.stats)
            continue
        binding = bindings.get(name)
        if binding is None:
            if name in GLOBAL_TRANSLATORS:
                binding = _Binding(BindingType.UNBOUND)
                result.stats.unbound_translators += 1
            elif _RE_TRANSLATOR_NAME.match(name):
                binding = _Binding(BindingType.UNKNOWN_SCOPED)
            else:
                continue
        body = m.group("body")
        if not body:
            continue
        line = text.count("\n", 0, pos) + 1
        if m.group("prefix"):
            template, has_fields = _fstring_to_pattern(body)
            if has_fields:
                full = _qualify(template, binding)
                result.stats.dynamic_keys += 1
                result.usages.append(
                    KeyUsageRecord(
                        key=full,
                        binding_type=binding.type,
                        namespace=binding.namespace,
                        is_dynamic=True,
                        pattern=full,
                        file=file_label,
                        line=line,
                        text=template,
                    )
                )
                continue
            body = template
        result.usages.append(
            KeyUsageRecord(
                key=_qualify(body, binding),
                binding_type=binding.type,
                namespace=binding.namespace,
                file=file_label,
                line=line,
                text=body,
            )
        )
    return result


def collect_files(
    root: str | Path,
    *,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
    suffixes: Iterable[str] = (".py",),
) -> List[Path]:
    """List source files under ``root`` (sorted for deterministic output).

    ``include``/``exclude`` are directory or file paths relative to ``root``.
    """
    base = Path(root)
    suffix_set = set(suffixes)
    starts = [base / inc for inc in include] if include else [base]
    excluded = [(base / ex).resolve() for ex in exclude]
    found: set[Path] = set()
    for start in starts:
        if start.is_file():
            candidates: Iterable[Path] = [start]
        elif start.is_dir():
            candidates = start.rglob("*")
        else:
            continue
        for p in candidates:
            if not p.is_file() or p.suffix not in suffix_set:
                continue
            if SKIP_DIRS & set(p.relative_to(base).parts):
                continue
            resolved = p.resolve()
            if any(resolved == ex or ex in resolved.parents for ex in excluded):
                continue
            found.add(p)
    return sorted(found)


def extract_usages(
    root: str | Path,
    *,
    include: Sequence[str] = (),
    exclude: Sequence[str] = (),
) -> ExtractionResult:
    base = Path(root)
    total = ExtractionResult()
    for file in collect_files(base, include=include, exclude=exclude):
        res = extract_file(file, display_path=file.relative_to(base).as_posix())
        total.usages.extend(res.usages)
        total.stats.merge(res.stats)
        total.files_scanned += res.files_scanned
    _logger.debug(
        "Extracted %d key usages from %d files", len(total.usages), total.files_scanned
    )
    return total
