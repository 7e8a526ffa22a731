"""
feed_registry.py — Configured RSS feeds (news and social)
==========================================================

A registry is a JSON array of FeedConfig records under one storage key:

    rss_feeds         news feeds shown by /api/news
    social_rss_feeds  Instagram-style RSS proxies shown in the social panel

FeedConfig = { id, url, title, description, isActive, lastChecked?,
               itemCount?, createdAt, updatedAt }

An empty key means "not configured yet": the configured default feeds are
returned, and the first admin write persists them together with the change.
"""

import random
import string
import time
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from errors import ConflictError, NotFoundError, ValidationError
from storage import KeyValueStore, utc_now_iso

log = logging.getLogger("dashboard.registry")

NEWS_FEEDS_KEY = "rss_feeds"
SOCIAL_FEEDS_KEY = "social_rss_feeds"
POSTS_COUNT_KEY = "social_rss_posts_count"

# Fields an admin may change through PATCH
PATCHABLE_FIELDS = ("url", "title", "description", "isActive", "lastChecked", "itemCount")


def is_absolute_url(url: Any) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _random_suffix(n: int = 9) -> str:
    return "".join(random.choice(string.ascii_lowercase + string.digits) for _ in range(n))


class FeedRegistry:
    def __init__(self, store: KeyValueStore, key: str, defaults: List[Dict[str, Any]], id_prefix: str):
        self.store = store
        self.key = key
        self.defaults = defaults
        self.id_prefix = id_prefix

    def _default_feeds(self) -> List[Dict[str, Any]]:
        now = utc_now_iso()
        return [{"createdAt": now, "updatedAt": now, **feed} for feed in self.defaults]

    def _new_id(self) -> str:
        return f"{self.id_prefix}-{int(time.time() * 1000)}-{_random_suffix()}"

    def list_all(self) -> List[Dict[str, Any]]:
        feeds = self.store.get(self.key)
        if not feeds:
            return self._default_feeds()
        return list(feeds)

    def list_active(self) -> List[Dict[str, Any]]:
        return [f for f in self.list_all() if f.get("isActive", True)]

    def save(self, feeds: List[Dict[str, Any]]) -> None:
        self.store.set(self.key, feeds)

    def get(self, feed_id: str) -> Dict[str, Any]:
        for feed in self.list_all():
            if feed.get("id") == feed_id:
                return feed
        raise NotFoundError("RSS feed not found")

    def _index_of(self, feeds: List[Dict[str, Any]], feed_id: str) -> int:
        for i, feed in enumerate(feeds):
            if feed.get("id") == feed_id:
                return i
        raise NotFoundError("RSS feed not found")

    @staticmethod
    def _validate_url(url: Any) -> str:
        if not is_absolute_url(url):
            raise ValidationError("Invalid URL format")
        return url.strip()

    @staticmethod
    def _check_duplicate(feeds: List[Dict[str, Any]], url: str, exclude_id: Optional[str] = None) -> None:
        for feed in feeds:
            if feed.get("url") == url and feed.get("id") != exclude_id:
                raise ConflictError("RSS feed with this URL already exists")

    def create(self, url: Any, title: Any, description: Any = "") -> Dict[str, Any]:
        if not url or not title:
            raise ValidationError("URL and title are required")
        url = self._validate_url(url)

        feeds = self.list_all()
        self._check_duplicate(feeds, url)

        now = utc_now_iso()
        feed = {
            "id": self._new_id(),
            "url": url,
            "title": str(title).strip(),
            "description": (description or "").strip() if isinstance(description, str) else "",
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        feeds.append(feed)
        self.save(feeds)
        log.info("[REGISTRY] %s: added %s (%s)", self.key, feed["title"], url)
        return feed

    def replace(self, feed_id: str, url: Any, title: Any, description: Any = "") -> Dict[str, Any]:
        """PUT semantics: url and title required, description reset when omitted."""
        if not url or not title:
            raise ValidationError("URL and title are required")
        url = self._validate_url(url)

        feeds = self.list_all()
        idx = self._index_of(feeds, feed_id)
        self._check_duplicate(feeds, url, exclude_id=feed_id)

        feeds[idx] = {
            **feeds[idx],
            "url": url,
            "title": str(title).strip(),
            "description": description.strip() if isinstance(description, str) else "",
            "updatedAt": utc_now_iso(),
        }
        self.save(feeds)
        return feeds[idx]

    def patch(self, feed_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """PATCH semantics, e.g. {"isActive": false} to toggle a feed."""
        if not isinstance(updates, dict):
            raise ValidationError("Update body must be a JSON object")

        feeds = self.list_all()
        idx = self._index_of(feeds, feed_id)

        changes = {k: v for k, v in updates.items() if k in PATCHABLE_FIELDS}
        if "url" in changes:
            changes["url"] = self._validate_url(changes["url"])
            self._check_duplicate(feeds, changes["url"], exclude_id=feed_id)
        if "title" in changes and not changes["title"]:
            raise ValidationError("Title cannot be empty")
        if "isActive" in changes:
            changes["isActive"] = bool(changes["isActive"])

        feeds[idx] = {**feeds[idx], **changes, "updatedAt": utc_now_iso()}
        self.save(feeds)
        return feeds[idx]

    def delete(self, feed_id: str) -> Dict[str, Any]:
        feeds = self.list_all()
        idx = self._index_of(feeds, feed_id)
        removed = feeds.pop(idx)
        self.save(feeds)
        log.info("[REGISTRY] %s: removed %s", self.key, removed.get("title"))
        return removed


def news_registry(store: KeyValueStore, config) -> FeedRegistry:
    return FeedRegistry(store, NEWS_FEEDS_KEY, config.default_news_feeds, "rss")


def social_registry(store: KeyValueStore, config) -> FeedRegistry:
    return FeedRegistry(store, SOCIAL_FEEDS_KEY, config.default_social_feeds, "social-rss")


class SocialPostSettings:
    """How many posts each social feed shows: global default plus per-feed overrides."""

    def __init__(self, store: KeyValueStore, default: int = 6, allowed=(3, 6, 9)):
        self.store = store
        self.default = default
        self.allowed = tuple(allowed)

    def _valid(self, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value in self.allowed

    def global_count(self) -> int:
        stored = self.store.get(POSTS_COUNT_KEY)
        return stored if self._valid(stored) else self.default

    def count_for(self, feed_id: Optional[str]) -> int:
        if feed_id:
            override = self.store.get(f"{POSTS_COUNT_KEY}:{feed_id}")
            if self._valid(override):
                return override
        return self.global_count()

    def set_count(self, count: Any, feed_id: Optional[str] = None) -> int:
        try:
            count = int(count)
        except (TypeError, ValueError):
            raise ValidationError(f"count must be one of {list(self.allowed)}")
        if count not in self.allowed:
            raise ValidationError(f"count must be one of {list(self.allowed)}")
        key = f"{POSTS_COUNT_KEY}:{feed_id}" if feed_id else POSTS_COUNT_KEY
        self.store.set(key, count)
        return count

    def overrides(self) -> Dict[str, int]:
        prefix = f"{POSTS_COUNT_KEY}:"
        result = {}
        for key in self.store.keys(prefix):
            value = self.store.get(key)
            if self._valid(value):
                result[key[len(prefix):]] = value
        return result
