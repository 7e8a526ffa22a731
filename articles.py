"""
articles.py — Raw feed item -> dashboard Article
=================================================

Article = { id, title, headline, content, url, imageUrl, urlToImage,
            relatedImages, publishedAt, formattedDate, category, author,
            source, rank, searchVolume }

An item without a real image is dropped here: normalize() returns None
when the extractor found nothing or only the placeholder. The only
articles ever carrying the placeholder are the fallback sets below.
"""

import random
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from image_extractor import decode_entities
from rss_parser import text_of

_WHITESPACE_RE = re.compile(r"\s+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n <= 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def article_id(position: int) -> str:
    suffix = _base36(int(time.time() * 1000) ^ random.getrandbits(32))[-6:]
    return f"news-{position}-{suffix}"


def search_volume() -> str:
    return f"{random.randint(100, 599)}K+"


def strip_html(html: str) -> str:
    """Visible text only: script/style removed, tags dropped, whitespace collapsed."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return _WHITESPACE_RE.sub(" ", soup.get_text(" ")).strip()


def build_excerpt(raw: str, limit: int = 280) -> str:
    return strip_html(decode_entities(raw or ""))[:limit]


def parse_pub_date(value: Any) -> datetime:
    """Feed date -> aware UTC datetime. Missing or unparseable means now."""
    text = text_of(value).strip()
    if text:
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    return datetime.now(timezone.utc)


def iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.") + \
        f"{dt.microsecond // 1000:03d}Z"


def formatted_date(dt: datetime) -> str:
    return dt.strftime("%d.%m.%y")


class ArticleNormalizer:
    def __init__(self, config):
        self.placeholder = config.placeholder_image
        self.excerpt_length = config.excerpt_length
        self.missing_excerpt = config.missing_excerpt_text

    def normalize(self, item: Dict[str, Any], image_url: Optional[str], feed_title: str,
                  channel_title: str = "", position: int = 0) -> Optional[Dict[str, Any]]:
        if not image_url or image_url == self.placeholder:
            return None

        title = decode_entities(text_of(item.get("title"))).strip() or "Untitled"
        raw_content = text_of(item.get("description")) or text_of(item.get("content:encoded"))
        content = build_excerpt(raw_content, self.excerpt_length) or self.missing_excerpt
        link = text_of(item.get("link")).strip() or "#"
        published = parse_pub_date(item.get("pubDate") or item.get("dc:date"))

        return {
            "id": article_id(position),
            "title": title,
            "headline": title,
            "content": content,
            "url": link,
            "imageUrl": image_url,
            "urlToImage": image_url,
            "relatedImages": [image_url],
            "publishedAt": iso_utc(published),
            "formattedDate": formatted_date(published),
            "category": "news",
            "author": channel_title or feed_title,
            "source": feed_title,
            "rank": position + 1,
            "searchVolume": search_volume(),
        }


def fallback_articles(config) -> List[Dict[str, Any]]:
    """Fixed set for an empty news result, declared order, ranks 1..N."""
    now = datetime.now(timezone.utc)
    articles = []
    for i, entry in enumerate(config.fallback_articles):
        articles.append({
            "id": f"fallback-{i + 1}",
            "title": entry["title"],
            "headline": entry["title"],
            "content": entry.get("content") or config.missing_excerpt_text,
            "url": entry.get("url") or "#",
            "imageUrl": config.placeholder_image,
            "urlToImage": config.placeholder_image,
            "relatedImages": [config.placeholder_image],
            "publishedAt": iso_utc(now),
            "formattedDate": formatted_date(now),
            "category": "news",
            "author": config.fallback_source,
            "source": config.fallback_source,
            "rank": i + 1,
            "searchVolume": entry.get("searchVolume") or search_volume(),
        })
    return articles


def dashboard_fallback_news(config) -> List[Dict[str, Any]]:
    """News section of /api/dashboard when the news pipeline itself fails."""
    now = iso_utc(datetime.now(timezone.utc))
    news = []
    for i, entry in enumerate(config.dashboard_fallback_news):
        volume = entry.get("searchVolume", "")
        news.append({
            "id": str(i + 1),
            "title": entry["title"],
            "headline": f"{entry['title']} {volume}".strip(),
            "content": entry.get("content", ""),
            "url": entry.get("url", "https://example.com/news"),
            "imageUrl": config.placeholder_image,
            "urlToImage": config.placeholder_image,
            "relatedImages": [config.placeholder_image],
            "publishedAt": now,
            "category": "news",
            "author": entry.get("author", ""),
            "source": entry.get("source", ""),
            "rank": i + 1,
            "searchVolume": volume,
        })
    return news
