"""
rss_parser.py — Feed fetch + XML-to-tree parser
================================================
Fetches an RSS (or Atom) document and turns it into a plain nested
dict tree the image extractor and normalizers can walk:

  - attributes live under "@name"         <enclosure url=".."/> -> {"@url": ".."}
  - text next to attributes is "#text"
  - well-known namespaces become prefixes  {mrss}content -> "media:content"
  - item / category / media:content / enclosure / entry are ALWAYS lists,
    so a one-item feed looks the same as a fifty-item feed

Usage:
    fetcher = FeedFetcher(session, timeout=10)
    feed = fetcher.fetch_or_empty("https://www.horizont.net/news/feed/")
    for item in feed.items: ...
"""

import logging
import time
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, NamedTuple, Optional, Union

import requests
from opentelemetry import trace

from degrade import run_degraded

log = logging.getLogger("dashboard.rss")
tracer = trace.get_tracer("dashboard.rss")

NAMESPACE_PREFIXES = {
    "http://search.yahoo.com/mrss/": "media",
    "http://search.yahoo.com/mrss": "media",
    "http://purl.org/rss/1.0/modules/content/": "content",
    "http://purl.org/dc/elements/1.1/": "dc",
    "http://www.w3.org/2005/Atom": "",
    "http://www.itunes.com/dtds/podcast-1.0.dtd": "itunes",
}

FORCE_ARRAY = {"item", "category", "media:content", "enclosure", "entry"}

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"


class FeedError(Exception):
    """Upstream fetch or parse failure for a single feed."""


class ParsedFeed(NamedTuple):
    channel: Dict[str, Any]
    items: List[Dict[str, Any]]

    @property
    def title(self) -> str:
        return text_of(self.channel.get("title"))


EMPTY_FEED = ParsedFeed({}, [])


# ==========================
# TREE BUILDING
# ==========================
def _qualified_name(tag: str) -> str:
    if tag.startswith("{"):
        uri, local = tag[1:].split("}", 1)
        prefix = NAMESPACE_PREFIXES.get(uri)
        if prefix:
            return f"{prefix}:{local}"
        return local
    return tag


def element_to_tree(elem: ET.Element) -> Any:
    """Convert one element (recursively) into str | dict."""
    children = list(elem)
    text = (elem.text or "").strip()

    if not children and not elem.attrib:
        return text

    node: Dict[str, Any] = {}
    for name, value in elem.attrib.items():
        node[f"@{_qualified_name(name)}"] = value
    if text:
        node["#text"] = text

    for child in children:
        name = _qualified_name(child.tag)
        value = element_to_tree(child)
        if name in node:
            if not isinstance(node[name], list):
                node[name] = [node[name]]
            node[name].append(value)
        elif name in FORCE_ARRAY:
            node[name] = [value]
        else:
            node[name] = value
    return node


def parse_xml_tree(raw_xml: Union[str, bytes]) -> Dict[str, Any]:
    """Parse an XML document into {root_name: tree}. Raises FeedError.

    Pass bytes where possible: expat then honours the encoding in the XML
    declaration instead of whatever charset the HTTP layer guessed.
    """
    if isinstance(raw_xml, bytes):
        raw_xml = raw_xml.lstrip(b"\xef\xbb\xbf").strip()
    else:
        raw_xml = (raw_xml or "").lstrip("\ufeff").strip()
    if not raw_xml:
        raise FeedError("Empty feed body")
    try:
        root = ET.fromstring(raw_xml)
    except ET.ParseError as e:
        raise FeedError(f"Failed to parse feed XML: {e}")
    tree = element_to_tree(root)
    if isinstance(tree, str):
        tree = {"#text": tree} if tree else {}
    return {_qualified_name(root.tag): tree}


# ==========================
# FIELD HELPERS
# ==========================
def text_of(value: Any) -> str:
    """Text content of a tree node regardless of its shape."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return text_of(value[0]) if value else ""
    if isinstance(value, dict):
        return str(value.get("#text", ""))
    return str(value)


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _atom_link(entry: Dict[str, Any]) -> str:
    links = as_list(entry.get("link"))
    fallback = ""
    for link in links:
        if isinstance(link, dict):
            href = link.get("@href", "")
            if link.get("@rel", "alternate") == "alternate" and href:
                return href
            fallback = fallback or href
        elif isinstance(link, str) and link:
            fallback = fallback or link
    return fallback


def _atom_entry_as_item(entry: Any) -> Dict[str, Any]:
    if not isinstance(entry, dict):
        return {}
    item: Dict[str, Any] = {
        "title": text_of(entry.get("title")),
        "link": _atom_link(entry),
        "pubDate": text_of(entry.get("published")) or text_of(entry.get("updated")),
        "description": text_of(entry.get("summary")),
        "guid": text_of(entry.get("id")),
    }
    content = text_of(entry.get("content"))
    if content:
        item["content:encoded"] = content
    for key in ("media:content", "media:thumbnail", "media:group", "enclosure", "category"):
        if key in entry:
            item[key] = entry[key]
    # Atom enclosures are <link rel="enclosure" href=".." type="image/..">
    for link in as_list(entry.get("link")):
        if isinstance(link, dict) and link.get("@rel") == "enclosure" and link.get("@href"):
            item.setdefault("enclosure", []).append({"@url": link["@href"], "@type": link.get("@type", "")})
    return item


def parse_feed_xml(raw_xml: Union[str, bytes]) -> ParsedFeed:
    """RSS 2.0 (rss.channel.item[]) first, Atom (feed.entry[]) second. Raises FeedError."""
    tree = parse_xml_tree(raw_xml)

    rss = tree.get("rss")
    if isinstance(rss, dict):
        channel = rss.get("channel")
        if isinstance(channel, list):
            channel = channel[0] if channel else None
        if not isinstance(channel, dict):
            raise FeedError("RSS document has no channel")
        items = [i for i in as_list(channel.get("item")) if isinstance(i, dict)]
        return ParsedFeed(channel, items)

    feed = tree.get("feed")
    if isinstance(feed, dict):
        items = [_atom_entry_as_item(e) for e in as_list(feed.get("entry"))]
        channel = {
            "title": text_of(feed.get("title")),
            "description": text_of(feed.get("subtitle")),
            "link": _atom_link(feed),
            "lastBuildDate": text_of(feed.get("updated")),
        }
        logo = text_of(feed.get("logo")) or text_of(feed.get("icon"))
        if logo:
            channel["image"] = {"url": logo}
        return ParsedFeed(channel, [i for i in items if i])

    raise FeedError(f"Unrecognized feed format: <{next(iter(tree), '?')}>")


# ==========================
# FETCHING
# ==========================
def cache_busted(url: str) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}t={int(time.time() * 1000)}"


class FeedFetcher:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 10.0,
                 user_agent: str = "AgencyDashboard/1.0"):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.user_agent = user_agent

    def fetch_body(self, url: str, refresh: bool = False) -> bytes:
        """Raw response bytes; decoding is left to the XML parser."""
        target = cache_busted(url) if refresh else url
        headers = {
            "User-Agent": self.user_agent,
            "Accept": FEED_ACCEPT,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        try:
            resp = self.session.get(target, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise FeedError(f"Fetch failed: {e}")
        if not 200 <= resp.status_code < 300:
            raise FeedError(f"HTTP {resp.status_code}")
        return resp.content

    def fetch(self, url: str, refresh: bool = False) -> ParsedFeed:
        """Fetch and parse one feed. Raises FeedError."""
        with tracer.start_as_current_span("feed.fetch") as span:
            span.set_attribute("feed.url", url)
            feed = parse_feed_xml(self.fetch_body(url, refresh))
            span.set_attribute("feed.items", len(feed.items))
            log.debug("[RSS] %s: %d items", url, len(feed.items))
            return feed

    def fetch_or_empty(self, url: str, refresh: bool = False) -> ParsedFeed:
        """Best-effort fetch: any failure is logged and yields an empty feed."""
        return run_degraded(self.fetch, EMPTY_FEED, f"feed {url}", url, refresh)
