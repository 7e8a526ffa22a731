"""
social_feeds.py — Instagram-style RSS proxies -> social panel
=============================================================

Each configured social feed (rss.app style proxy of an Instagram account)
becomes a SocialFeed = { title, posts: SocialPost[] }.

    SocialPost = { id, imageUrl, caption, likes, comments, timestamp }

Feeds are fetched concurrently and returned in registry order. A feed that
cannot be fetched or parsed still shows up, with a single placeholder post.
Posts without an image keep the placeholder; social cards render it.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List

from articles import strip_html
from feed_registry import FeedRegistry, SocialPostSettings
from image_extractor import ImageExtractor
from rss_parser import FeedError, FeedFetcher, text_of

log = logging.getLogger("dashboard.social")

_CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")
_TITLE_LIKES_RE = re.compile(r"\((\d+)\s+likes?\)")
_TEXT_LIKES_RE = re.compile(r"(\d+(?:,\d+)?)\s+[Ll]ikes?")


def slugify(title: str) -> str:
    return re.sub(r"\s", "-", (title or "").lower())


def extract_likes(item: Dict[str, Any]) -> int:
    """'(123 likes)' in the title wins, then 'N likes' in description or content."""
    match = _TITLE_LIKES_RE.search(text_of(item.get("title")))
    if match:
        return int(match.group(1))
    for field in ("description", "content:encoded"):
        match = _TEXT_LIKES_RE.search(text_of(item.get(field)))
        if match:
            return int(match.group(1).replace(",", ""))
    return 0


def clean_caption(raw: str) -> str:
    return strip_html(_CDATA_RE.sub("", raw or ""))


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SocialPipeline:
    def __init__(self, registry: FeedRegistry, settings: SocialPostSettings, fetcher: FeedFetcher,
                 extractor: ImageExtractor, config):
        self.registry = registry
        self.settings = settings
        self.fetcher = fetcher
        self.extractor = extractor
        self.config = config

    def placeholder_post(self, title: str) -> Dict[str, Any]:
        return {
            "id": f"fallback-{slugify(title)}",
            "imageUrl": self.config.placeholder_image,
            "caption": f"{title} - Visit our page for the latest updates",
            "likes": 0,
            "comments": 0,
            "timestamp": now_iso(),
        }

    def to_post(self, item: Dict[str, Any], channel: Dict[str, Any], feed_title: str, index: int) -> Dict[str, Any]:
        guid = item.get("guid")
        if isinstance(guid, str) and guid.strip():
            post_id = guid.strip()
        elif isinstance(guid, dict) and text_of(guid).strip():
            post_id = text_of(guid).strip()
        else:
            post_id = f"{slugify(feed_title)}-{index}"

        return {
            "id": post_id,
            "imageUrl": self.extractor.extract(item, channel) or self.config.placeholder_image,
            "caption": clean_caption(text_of(item.get("description"))),
            "likes": extract_likes(item),
            "comments": 0,
            "timestamp": text_of(item.get("pubDate")) or now_iso(),
        }

    def load_feed(self, feed: Dict[str, Any], refresh: bool = False) -> Dict[str, Any]:
        title = feed.get("title") or feed.get("url", "")
        try:
            parsed = self.fetcher.fetch(feed["url"], refresh)
        except FeedError as e:
            log.warning("[SOCIAL] %s unavailable, using placeholder: %s", title, e)
            return {"title": title, "posts": [self.placeholder_post(title)]}

        posts = [self.to_post(item, parsed.channel, title, i) for i, item in enumerate(parsed.items)]
        count = self.settings.count_for(feed.get("id"))
        log.info("[SOCIAL] %s: %d posts, showing %d", title, len(posts), min(count, len(posts)))
        return {"title": title, "posts": posts[:count]}

    def _load_feed_safe(self, feed: Dict[str, Any], refresh: bool) -> Dict[str, Any]:
        try:
            return self.load_feed(feed, refresh)
        except Exception as e:
            title = feed.get("title") or feed.get("url", "")
            log.warning("[SOCIAL] %s failed: %s", title, e)
            return {"title": title, "posts": [self.placeholder_post(title)]}

    def get_feeds(self, refresh: bool = False) -> List[Dict[str, Any]]:
        feeds = self.registry.list_active()
        if not feeds:
            return []
        workers = max(1, min(self.config.social_fetch_workers, len(feeds)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # map() keeps input order regardless of completion order
            return list(pool.map(lambda f: self._load_feed_safe(f, refresh), feeds))

    def fallback_feeds(self) -> List[Dict[str, Any]]:
        return [{"title": self.config.social_fallback_title,
                 "posts": [dict(p, timestamp=now_iso()) for p in self.config.social_fallback_posts]}]
