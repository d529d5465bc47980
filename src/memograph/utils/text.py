from __future__ import annotations

import re
from typing import Set


_WORD_SPLIT = re.compile(r"[\W_]+")


def word_count(text: str) -> int:
    return len([t for t in text.split() if t])


def truncate(text: str, max_chars: int) -> str:
    if max_chars <= 0:
        return ""
    return text[:max_chars]


def trigrams(text: str) -> Set[str]:
    """
    Trigram set compatible with PostgreSQL pg_trgm.

    Each word (letters or digits of any script) is lowercased and padded
    with two spaces in front and one behind before being cut into 3-character windows.
    """
    grams: Set[str] = set()
    for word in _WORD_SPLIT.split(text.lower()):
        if not word:
            continue
        padded = f"  {word} "
        for i in range(len(padded) - 2):
            grams.add(padded[i : i + 3])
    return grams


def trigram_similarity(a: str, b: str) -> float:
    """
    Shared trigrams over the union of both trigram sets, in [0, 1].
    """
    ta = trigrams(a)
    tb = trigrams(b)
    if not ta or not tb:
        return 0.0
    return len(ta & tb) / len(ta | tb)
