"""Spot-check "possibly unused" keys against the live source tree.

A random sample of unused keys is searched by their last segment (the part a
developer would most likely type, e.g. ``submit`` for ``auth.login.submit``)
in the project's source files. A hit does not prove usage, a miss strengthens
the case for deletion; the result is advisory only.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from parsing.key_extractor import collect_files

__all__ = ["VerificationResult", "verify_unused_keys", "SOURCE_SUFFIXES"]

SOURCE_SUFFIXES = (".py", ".ts", ".tsx", ".js", ".jsx")


@dataclass(frozen=True, slots=True)
class VerificationResult:
    key: str
    found: bool
    count: int


def verify_unused_keys(
    unused: Mapping[str, Sequence[str]],
    root_dir: str | Path,
    *,
    sample_size: int = 10,
    rng: Optional[random.Random] = None,
) -> List[VerificationResult]:
    all_unused = sorted(k for keys in unused.values() for k in keys)
    if not all_unused:
        return []
    rng = rng or random.Random()
    sample = rng.sample(all_unused, min(sample_size, len(all_unused)))

    texts: List[str] = []
    for file in collect_files(root_dir, suffixes=SOURCE_SUFFIXES):
        try:
            texts.append(file.read_text(encoding="utf-8", errors="ignore"))
        except OSError:
            continue

    results: List[VerificationResult] = []
    for key in sample:
        term = key.rsplit(".", 1)[-1] or key
        count = sum(line.count(term) > 0 for text in texts for line in text.splitlines())
        results.append(VerificationResult(key, count > 0, count))
    return results
