from __future__ import annotations

import logging
from typing import Any, Dict, List

import feedparser
import requests

from .exceptions import SourceFetchError
from .models import RawItem
from .normalizer import to_raw_item
from .parser import parse_entry

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; rss-digest/0.1; +https://github.com/)"


def fetch_feed_entries(url: str, *, timeout: float = 15.0) -> List[Dict[str, Any]]:
    """
    Fetch a single feed URL and return its raw feedparser entries.

    Raises SourceFetchError on network/HTTP issues or when the feed is
    malformed (bozo) and yields nothing usable.
    """
    try:
        resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SourceFetchError(f"Failed to fetch feed: {url} ({e})") from e

    feed = feedparser.parse(resp.content)
    entries = getattr(feed, "entries", None)

    if getattr(feed, "bozo", 0) and not entries:
        # bozo_exception may exist; include a short message for diagnostics
        exc = getattr(feed, "bozo_exception", None)
        msg = f"Invalid RSS/Atom feed: {url}"
        if exc:
            msg += f" ({exc})"
        raise SourceFetchError(msg)

    if not isinstance(entries, list):
        raise SourceFetchError(f"Feed has no entries: {url}")
    return entries


def fetch_feed_items(url: str, *, timeout: float = 15.0) -> List[RawItem]:
    """Fetch a feed and normalize its entries, keeping feed order."""
    items: List[RawItem] = []
    for entry in fetch_feed_entries(url, timeout=timeout):
        try:
            items.append(to_raw_item(parse_entry(entry)))
        except ValueError:
            logger.debug("Skipping malformed entry in %s", url)
    return items
