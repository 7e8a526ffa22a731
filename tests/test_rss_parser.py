"""
tests/test_rss_parser.py — Feed fetching and XML decoding
"""

import pytest
import requests

from conftest import FakeResponse, FakeSession, network_error
from rss_parser import FeedError, FeedFetcher, parse_feed_xml

FEED_URL = "https://www.horizont.net/news/feed/"

GERMAN_FEED = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<rss version=\"2.0\"><channel><title>HORIZONT</title>"
    "<item><title>Kampagne für Müller</title><link>https://www.horizont.net/1</link></item>"
    "</channel></rss>"
)


def served_as(body: bytes, content_type: str) -> requests.Response:
    """A real Response with the encoding requests' adapter would pick from the headers."""
    resp = requests.Response()
    resp.status_code = 200
    resp._content = body
    resp.headers["Content-Type"] = content_type
    resp.encoding = requests.utils.get_encoding_from_headers(resp.headers)
    return resp


# ═══════════════════════════════════════════
# ENCODING
# ═══════════════════════════════════════════

def test_utf8_feed_served_without_charset_keeps_umlauts():
    resp = served_as(GERMAN_FEED.encode("utf-8"), "text/xml")
    assert resp.encoding == "ISO-8859-1"
    feed = FeedFetcher(FakeSession({FEED_URL: resp})).fetch(FEED_URL)
    assert feed.items[0]["title"] == "Kampagne für Müller"


def test_latin1_declaration_is_honoured():
    body = GERMAN_FEED.replace("UTF-8", "ISO-8859-1").encode("iso-8859-1")
    feed = FeedFetcher(FakeSession({FEED_URL: served_as(body, "application/rss+xml")})).fetch(FEED_URL)
    assert feed.items[0]["title"] == "Kampagne für Müller"


def test_byte_order_mark_is_tolerated():
    feed = parse_feed_xml(b"\xef\xbb\xbf" + GERMAN_FEED.encode("utf-8"))
    assert feed.title == "HORIZONT"


@pytest.mark.parametrize("body", [b"", b"   ", b"<rss><channel>", b"<html><body>nope</body></html>"])
def test_unusable_bodies_raise_feed_error(body):
    with pytest.raises(FeedError):
        parse_feed_xml(body)


# ═══════════════════════════════════════════
# FETCHING
# ═══════════════════════════════════════════

def test_refresh_appends_cache_buster_and_no_cache_headers():
    session = FakeSession({FEED_URL: FakeResponse(200, GERMAN_FEED)})
    FeedFetcher(session).fetch(FEED_URL, refresh=True)
    call = session.calls[0]
    assert call["url"].startswith(FEED_URL + "?t=")
    assert call["headers"]["Cache-Control"] == "no-cache"
    assert call["timeout"] == 10.0


@pytest.mark.parametrize("upstream", [FakeResponse(500, "boom"), network_error()])
def test_fetch_or_empty_swallows_upstream_failures(upstream):
    feed = FeedFetcher(FakeSession({FEED_URL: upstream})).fetch_or_empty(FEED_URL)
    assert feed.items == []
