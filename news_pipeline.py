"""
news_pipeline.py — Feed registry -> mixed, ranked article page
===============================================================

    active feeds ─▶ fetch+parse ─▶ image ─▶ normalize/filter ─▶ cap per feed
                                                                     │
    response ◀── re-rank ◀── round-robin mix ◀── newest first ◀──────┘

Feeds are fetched one after another. A feed that fails is logged and
skipped; if nothing survives, the fixed fallback set is returned.

Usage:
    pipeline = NewsPipeline(registry, fetcher, extractor, normalizer, config)
    articles = pipeline.get_articles(page_size=12, refresh=False)
"""

import logging
import math
from collections import Counter
from typing import Any, Dict, List

from articles import ArticleNormalizer, fallback_articles
from degrade import run_degraded
from feed_registry import FeedRegistry
from image_extractor import ImageExtractor
from mixer import mix_round_robin
from rss_parser import FeedFetcher

log = logging.getLogger("dashboard.news")


class NewsPipeline:
    def __init__(self, registry: FeedRegistry, fetcher: FeedFetcher, extractor: ImageExtractor,
                 normalizer: ArticleNormalizer, config):
        self.registry = registry
        self.fetcher = fetcher
        self.extractor = extractor
        self.normalizer = normalizer
        self.config = config

    def clamp_page_size(self, raw: Any) -> int:
        """Query value -> page size. Invalid or non-positive means the default."""
        try:
            size = int(raw)
        except (TypeError, ValueError):
            return self.config.default_page_size
        if size <= 0:
            return self.config.default_page_size
        return min(size, self.config.max_page_size)

    def articles_for_feed(self, feed: Dict[str, Any], cap: int, refresh: bool = False) -> List[Dict[str, Any]]:
        parsed = self.fetcher.fetch_or_empty(feed["url"], refresh)
        feed_title = feed.get("title") or parsed.title or feed["url"]
        articles: List[Dict[str, Any]] = []
        for item in parsed.items:
            if len(articles) >= cap:
                break
            image_url = self.extractor.extract(item, parsed.channel)
            article = self.normalizer.normalize(item, image_url, feed_title, parsed.title, len(articles))
            if article is not None:
                article["feedId"] = feed.get("id") or feed["url"]
                articles.append(article)
        log.debug("[NEWS] %s: %d/%d items kept", feed_title, len(articles), len(parsed.items))
        return articles

    def get_articles(self, page_size: int, refresh: bool = False) -> List[Dict[str, Any]]:
        feeds = self.registry.list_active()
        if not feeds or page_size <= 0:
            return fallback_articles(self.config)

        cap = math.ceil(page_size / len(feeds))
        collected: List[Dict[str, Any]] = []
        for feed in feeds:
            collected.extend(run_degraded(self.articles_for_feed, [], f"news feed {feed.get('url')}",
                                          feed, cap, refresh))

        if not collected:
            log.warning("[NEWS] no articles from %d feed(s), serving fallback set", len(feeds))
            return fallback_articles(self.config)

        collected.sort(key=lambda a: a["publishedAt"], reverse=True)
        feed_order = [f.get("id") or f["url"] for f in feeds]
        mixed = mix_round_robin(collected, page_size, feed_order, key="feedId")
        for rank, article in enumerate(mixed, start=1):
            article["rank"] = rank

        log.info("[NEWS] %d articles from sources %s", len(mixed),
                 dict(Counter(a["source"] for a in mixed)))
        return mixed
