"""Feed fetching and entry normalization, with HTTP stubbed out."""

from datetime import datetime, timezone

import pytest
import requests

from rss_digest import fetcher
from rss_digest.exceptions import SourceFetchError
from rss_digest.normalizer import to_raw_item
from rss_digest.parser import clean_text, parse_entry

RSS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Frontend Weekly</title>
    <link>https://fw.example/</link>
    <item>
      <title>CSS anchor positioning is here</title>
      <link>https://fw.example/anchor</link>
      <description>&lt;p&gt;Tooltips   without &lt;b&gt;JavaScript&lt;/b&gt;.&lt;/p&gt;</description>
      <pubDate>Fri, 14 Mar 2025 09:30:00 GMT</pubDate>
    </item>
    <item>
      <title></title>
      <link>https://fw.example/untitled</link>
    </item>
    <item>
      <title>No link at all</title>
      <pubDate>Fri, 14 Mar 2025 08:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


class FakeResponse:
    def __init__(self, content=b"", status=200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")


@pytest.fixture
def serve(monkeypatch):
    def _serve(response):
        def fake_get(url, headers=None, timeout=None):
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(fetcher.requests, "get", fake_get)

    return _serve


def test_fetch_feed_items_normalizes_entries(serve):
    serve(FakeResponse(RSS))

    items = fetcher.fetch_feed_items("https://fw.example/rss")

    assert [it.link for it in items] == ["https://fw.example/anchor", "https://fw.example/untitled"]
    first, untitled = items
    assert first.title == "CSS anchor positioning is here"
    assert "Tooltips without JavaScript" in first.snippet
    assert "<" not in first.snippet
    assert first.published_at == datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
    # empty titles fall back to the link; missing dates stay None
    assert untitled.title == "https://fw.example/untitled"
    assert untitled.snippet is None
    assert untitled.published_at is None


def test_network_error_becomes_source_fetch_error(serve):
    serve(requests.ConnectionError("Name or service not known"))
    with pytest.raises(SourceFetchError):
        fetcher.fetch_feed_items("https://down.example/rss")


def test_http_error_becomes_source_fetch_error(serve):
    serve(FakeResponse(b"oops", status=503))
    with pytest.raises(SourceFetchError):
        fetcher.fetch_feed_items("https://down.example/rss")


def test_garbage_document_becomes_source_fetch_error(serve):
    serve(FakeResponse(b"<html><body>not a feed"))
    with pytest.raises(SourceFetchError):
        fetcher.fetch_feed_items("https://html.example/")


def test_parse_entry_prefers_updated_when_published_missing():
    entry = {
        "title": "  Spaced   title ",
        "link": "https://x.example/1",
        "updated": "2025-03-13T22:15:00Z",
    }
    parsed = parse_entry(entry)
    assert parsed["title"] == "Spaced title"
    assert parsed["published_at"] == datetime(2025, 3, 13, 22, 15, tzinfo=timezone.utc)


def test_to_raw_item_requires_link():
    with pytest.raises(ValueError):
        to_raw_item({"title": "t", "link": "", "snippet": "", "published_at": None})


def test_clean_text():
    assert clean_text("") == ""
    assert clean_text("plain\n text") == "plain text"
    assert clean_text("<p>a &amp; b</p>") == "a & b"
