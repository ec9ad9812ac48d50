"""
Shared fixtures and fakes for the rss_digest tests.

Fakes stand in for the feed fetcher, the text/image services and the Telegram
channel, so no test touches the network.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Union

import pytest

from rss_digest.config import DigestConfig
from rss_digest.exceptions import DeliveryError, SourceFetchError
from rss_digest.models import RawItem, SourceDescriptor

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


def make_item(
    title: str = "CSS nesting lands in all browsers",
    *,
    hours_old: Optional[float] = 1,
    snippet: Optional[str] = "Native nesting is now baseline.",
    link: Optional[str] = None,
) -> RawItem:
    published = NOW - timedelta(hours=hours_old) if hours_old is not None else None
    return RawItem(
        title=title,
        snippet=snippet,
        link=link or f"https://example.com/{abs(hash(title))}",
        published_at=published,
    )


class FakeGenerator:
    """Text generator returning queued replies; exceptions in the queue are raised."""

    def __init__(self, *replies: Union[str, Exception], default: Union[str, Exception, None] = None) -> None:
        self._replies = list(replies)
        self._default = default
        self.calls: List[dict] = []

    def complete(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        reply = self._replies.pop(0) if self._replies else self._default
        if reply is None:
            raise AssertionError("unexpected call to text generator")
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeChannel:
    def __init__(self, *, fail_text: bool = False, fail_image: bool = False) -> None:
        self.texts: List[str] = []
        self.images: List[tuple] = []
        self._fail_text = fail_text
        self._fail_image = fail_image

    def send_text(self, body: str) -> None:
        if self._fail_text:
            raise DeliveryError("Bad Request: can't parse entities")
        self.texts.append(body)

    def send_image(self, image_ref: str, caption: str) -> None:
        if self._fail_image:
            raise DeliveryError("Bad Request: wrong file identifier")
        self.images.append((image_ref, caption))


def fake_fetch(feeds: Dict[str, Union[List[RawItem], Exception]]) -> Callable[[str], List[RawItem]]:
    def _fetch(url: str) -> List[RawItem]:
        result = feeds[url]
        if isinstance(result, Exception):
            raise result
        return list(result)

    return _fetch


@pytest.fixture
def sources():
    return (
        SourceDescriptor("Source A", "https://a.example/feed"),
        SourceDescriptor("Source B", "https://b.example/feed"),
        SourceDescriptor("Source C", "https://c.example/feed"),
    )


@pytest.fixture
def config(sources):
    return DigestConfig(
        bot_token="123:abc",
        channel_id="@frontend_digest",
        openai_api_key="sk-test",
        sources=sources,
        max_workers=2,
    )


@pytest.fixture
def broken_source_error():
    return SourceFetchError("Failed to fetch feed: https://c.example/feed (timed out)")
