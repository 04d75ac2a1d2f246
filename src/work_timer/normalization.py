"""Utilities to normalize work item titles before they are tracked."""

from __future__ import annotations

import re
from typing import Optional

_ID_PREFIX_PATTERN = re.compile(r"^#?(\d+)\s*[:\-]\s*")


def normalize_work_item_title(work_item_id: int, title: Optional[str]) -> Optional[str]:
    """Collapse whitespace and drop a redundant ``#<id>:`` display prefix."""
    if not title:
        return None
    normalized = re.sub(r"\s+", " ", title).strip()
    match = _ID_PREFIX_PATTERN.match(normalized)
    if match and int(match.group(1)) == work_item_id:
        normalized = normalized[match.end():].strip()
    return normalized or None


def format_work_item(work_item_id: int, title: str) -> str:
    return f"#{work_item_id}: {title}"
