from __future__ import annotations

import calendar
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup
from feedparser.datetimes import _parse_date

_WS_RE = re.compile(r"\s+")


def _from_struct(val: time.struct_time) -> datetime:
    # feedparser normalizes *_parsed fields to UTC
    return datetime.fromtimestamp(calendar.timegm(val), tz=timezone.utc)


def _to_datetime(entry: Dict[str, Any]) -> Optional[datetime]:
    """
    Convert feed entry date fields to timezone-aware UTC datetime.
    Priority: published_parsed -> updated_parsed -> created_parsed -> None.
    """
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        val = entry.get(key)
        if isinstance(val, time.struct_time):
            try:
                return _from_struct(val)
            except (OverflowError, ValueError):
                continue
    # Fallback: raw strings when feedparser could not fill *_parsed itself.
    for key in ("published", "updated", "created"):
        s = entry.get(key)
        if isinstance(s, str) and s:
            parsed = _parse_date(s)
            if isinstance(parsed, time.struct_time):
                try:
                    return _from_struct(parsed)
                except (OverflowError, ValueError):
                    continue
    return None


def clean_text(raw: str) -> str:
    """Strip markup and collapse whitespace."""
    if not raw:
        return ""
    if "<" in raw:
        raw = BeautifulSoup(raw, "html.parser").get_text(" ")
    return _WS_RE.sub(" ", raw).strip()


def parse_entry(entry: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map a raw feed entry (from feedparser) to a normalized dict with common fields.
    Fields: title, snippet, link, published_at (datetime|None)
    """
    title = clean_text(entry.get("title") or "")
    snippet = clean_text(entry.get("summary") or entry.get("description") or "")
    link = (entry.get("link") or entry.get("feedburner_origlink") or "").strip()

    return {
        "title": title,
        "snippet": snippet,
        "link": link,
        "published_at": _to_datetime(entry),
    }
