"""Normalization helpers.

Centralizes defensive parsing of loosely-typed store documents before
they reach the Pydantic models.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def safe_bool(value: Any, default: bool) -> bool:
    """Interpret flags the way loose writers send them.

    Only an explicit false value turns a flag off; anything unreadable
    keeps *default*.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"false", "0", "no", "off"}:
            return False
        if normalized in {"true", "1", "yes", "on"}:
            return True
    return default


def safe_tags(value: Any) -> list[str]:
    """Normalize a tag list, dropping blanks and duplicates."""
    if value is None:
        return []
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, (list, tuple)):
        return []
    tags: list[str] = []
    for item in items:
        text = safe_str(item)
        if text is not None and text not in tags:
            tags.append(text)
    return tags
