from __future__ import annotations

from typing import Any, Dict

from .models import RawItem


def to_raw_item(entry: Dict[str, Any]) -> RawItem:
    """
    Convert a parsed entry dict into a RawItem.
    Requires:
    - link (non-empty)
    Optional:
    - title (falls back to the link), snippet, published_at
    """
    link = entry.get("link") or ""
    if not link:
        raise ValueError("Entry lacks required field for RawItem: link")

    title = entry.get("title") or link
    snippet = entry.get("snippet") or None

    return RawItem(
        title=title,
        snippet=snippet,
        link=link,
        published_at=entry.get("published_at"),
    )
