from __future__ import annotations

from typing import Dict, Iterable, Tuple


def in_unit_interval(value: float) -> bool:
    return 0.0 <= value <= 1.0


def unique_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """
    Deduplicate tags, keeping first-seen order and dropping blanks.
    """
    seen: Dict[str, None] = {}
    for tag in tags:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen[tag] = None
    return tuple(seen)
