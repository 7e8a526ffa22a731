"""
app.py — Agency dashboard service
==================================
Builds the Flask app: config from the environment, one key-value store and
one image store chosen at startup, the ingestion pipelines, and the
public / auth / admin blueprints.

Run locally:
    DASHBOARD_PASSWORD=secret python app.py

Tests build their own app:
    app = create_app(DashboardConfig(data_dir=tmp), session=FakeSession(...))
"""

import os
import logging
from typing import Optional

import requests
from flask import Flask

from config import DashboardConfig
from storage import KeyValueStore, ImageStore, build_store, build_image_store
from feed_registry import news_registry, social_registry, SocialPostSettings
from rss_parser import FeedFetcher
from image_extractor import ImageExtractor, news_strategies, social_strategies
from articles import ArticleNormalizer
from news_pipeline import NewsPipeline
from social_feeds import SocialPipeline
from events import EventStore
from slideshow import Slideshow
from observability import init_observability
from platform_infra import init_platform
from auth import auth_bp
from dashboard_api import dashboard_bp
from admin_api import admin_bp

log = logging.getLogger("dashboard.app")


class DashboardServices:
    """Everything a request handler needs, built once per app."""

    def __init__(self, config: DashboardConfig, store: KeyValueStore, image_store: ImageStore,
                 session: requests.Session):
        self.config = config
        self.store = store
        self.image_store = image_store
        self.session = session

        self.news_registry = news_registry(store, config)
        self.social_registry = social_registry(store, config)
        self.post_settings = SocialPostSettings(store, config.social_posts_default, config.social_posts_allowed)

        self.fetcher = FeedFetcher(session, timeout=config.fetch_timeout, user_agent=config.user_agent)
        self.news_extractor = ImageExtractor(news_strategies(), config.image_host_hints)
        self.social_extractor = ImageExtractor(social_strategies(), config.image_host_hints)

        self.news_pipeline = NewsPipeline(self.news_registry, self.fetcher, self.news_extractor,
                                          ArticleNormalizer(config), config)
        self.social_pipeline = SocialPipeline(self.social_registry, self.post_settings, self.fetcher,
                                              self.social_extractor, config)
        self.events = EventStore(store)
        self.slideshow = Slideshow(image_store)


def create_app(config: Optional[DashboardConfig] = None, session: Optional[requests.Session] = None,
               store: Optional[KeyValueStore] = None, image_store: Optional[ImageStore] = None) -> Flask:
    config = config or DashboardConfig.from_env()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = 32 * 1024 * 1024

    init_observability(app, config)
    init_platform(app, config)

    services = DashboardServices(
        config,
        store if store is not None else build_store(config),
        image_store if image_store is not None else build_image_store(config),
        session or requests.Session(),
    )
    app.extensions["dashboard"] = services

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(admin_bp)

    if config.is_production and config.dashboard_password == "change-me":
        log.warning("[APP] DASHBOARD_PASSWORD is not set; admin is protected by the default password")

    log.info("[APP] %s ready (%s, storage=%s, images=%s)", config.version, config.environment,
             config.storage_backend, config.image_backend)
    return app


app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "10000")), debug=not app.extensions["dashboard"].config.is_production)
