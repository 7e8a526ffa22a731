"""
config.py — Dashboard configuration
====================================

Everything the pipelines need that used to live in module-level
constants (password, fallback sets, image host hints, default feeds)
is carried by one DashboardConfig built at startup and handed to each
component.

Usage:
    from config import DashboardConfig
    config = DashboardConfig.from_env()
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

PLACEHOLDER_IMAGE = "/images/breaking-news-fallback.svg"


def _env_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _default_news_feeds() -> List[Dict[str, Any]]:
    return [
        {
            "id": "horizont-news",
            "url": "https://www.horizont.net/news/feed/",
            "title": "HORIZONT News",
            "description": "Aktuelle Nachrichten aus der Werbebranche",
            "isActive": True,
        }
    ]


def _default_social_feeds() -> List[Dict[str, Any]]:
    return [
        {"id": "porsche-instagram", "url": "https://rss.app/feeds/izVEz8ICc3RriXvF.xml",
         "title": "Porsche Motorsport", "description": "", "isActive": True},
        {"id": "bbdo-instagram", "url": "https://rss.app/feeds/zwbRbUNOsbxIJHGj.xml",
         "title": "BBDO Instagram", "description": "", "isActive": True},
    ]


def _default_fallback_articles() -> List[Dict[str, str]]:
    # Shown by /api/news when every configured feed comes back empty
    return [
        {"title": "Agentur gewinnt neuen Automotive-Etat",
         "url": "https://www.horizont.net/agenturen/aktuell"},
        {"title": "Pitch-Update: Neue Leadagentur für Retail-Marke",
         "url": "https://www.horizont.net/agenturen/aktuell"},
        {"title": "Kreation der Woche: Kampagne setzt auf KI-Visuals",
         "url": "https://www.horizont.net/agenturen/aktuell"},
        {"title": "Fusion am Markt: Netzwerk integriert Digital-Spezialisten",
         "url": "https://www.horizont.net/agenturen/aktuell"},
    ]


def _default_dashboard_fallback_news() -> List[Dict[str, str]]:
    # Used by /api/dashboard when the news section itself fails
    return [
        {"title": "Tesla Bot", "source": "Tech Daily", "author": "Technology News",
         "content": "Latest updates on Tesla's humanoid robot project", "searchVolume": "400K+"},
        {"title": "Sean Penn", "source": "Entertainment Weekly", "author": "Entertainment Weekly",
         "content": "News about the actor and filmmaker", "searchVolume": "250K+"},
        {"title": "Call of Duty: Vanguard", "source": "Game Informer", "author": "Gaming News",
         "content": "Updates on the popular video game", "searchVolume": "200K+"},
        {"title": "Cardano", "source": "Financial Times", "author": "Business News",
         "content": "Cryptocurrency market updates and news", "searchVolume": "130K+"},
        {"title": "The Night House", "source": "Variety", "author": "Movie Reviews",
         "content": "Reviews and discussions about the horror film", "searchVolume": "70K+"},
        {"title": "Library of Congress", "source": "NPR", "author": "Education News",
         "content": "Information about the national library of the United States", "searchVolume": "40K+"},
    ]


def _default_tag_translations() -> Dict[str, str]:
    # English feed tag -> German label, used by the feed analyzer
    return {
        "marketing": "Marketing", "advertising": "Werbung", "brand": "Marke",
        "campaign": "Kampagne", "digital": "Digital", "social": "Social Media",
        "content": "Content", "strategy": "Strategie", "creative": "Kreativ",
        "media": "Medien", "agency": "Agentur", "client": "Kunde",
        "business": "Business", "innovation": "Innovation", "technology": "Technologie",
        "design": "Design", "communication": "Kommunikation", "public": "Öffentlich",
        "relations": "Beziehungen", "event": "Event", "conference": "Konferenz",
        "award": "Auszeichnung", "festival": "Festival", "exhibition": "Ausstellung",
    }


def _default_social_fallback_posts() -> List[Dict[str, Any]]:
    return [
        {
            "id": "1",
            "caption": "Our team celebrating the Grand Prix win at Cannes Lions Festival! "
                       "#CannesLions #AgencyLife #AwardWinning",
            "imageUrl": "https://images.unsplash.com/photo-1600880292203-757bb62b4baf?q=80&w=800",
            "likes": 245,
            "comments": 37,
        }
    ]


@dataclass
class DashboardConfig:
    environment: str = "development"
    version: str = "dashboard-1.0"

    # ── persistence ──
    storage_backend: str = "file"
    data_dir: str = "data"
    redis_url: Optional[str] = None
    image_backend: str = "local"
    upload_dir: str = os.path.join("public", "uploads")
    upload_url_prefix: str = "/uploads/"
    s3_bucket: Optional[str] = None
    s3_prefix: str = "slideshow/"
    s3_public_base_url: Optional[str] = None
    aws_region: str = "us-east-1"

    # ── auth ──
    dashboard_password: str = "change-me"
    jwt_secret: str = "CHANGE_ME_IN_PRODUCTION"
    jwt_ttl_hours: int = 24

    # ── ingestion ──
    fetch_timeout: float = 10.0
    user_agent: str = "AgencyDashboard/1.0 (+rss ingestion)"
    default_page_size: int = 12
    max_page_size: int = 50
    excerpt_length: int = 280
    placeholder_image: str = PLACEHOLDER_IMAGE
    missing_excerpt_text: str = "Artikelvorschau derzeit nicht verfügbar."
    image_host_hints: List[str] = field(default_factory=lambda: [
        "imgur.com", "flickr.com", "unsplash.com", "pixabay.com",
        "pexels.com", "cdn", "static",
    ])
    default_news_feeds: List[Dict[str, Any]] = field(default_factory=_default_news_feeds)
    fallback_articles: List[Dict[str, str]] = field(default_factory=_default_fallback_articles)
    fallback_source: str = "HORIZONT"

    # ── social ──
    default_social_feeds: List[Dict[str, Any]] = field(default_factory=_default_social_feeds)
    social_posts_default: int = 6
    social_posts_allowed: List[int] = field(default_factory=lambda: [3, 6, 9])
    social_fetch_workers: int = 4
    social_fallback_title: str = "Porsche Motorsport"
    social_fallback_posts: List[Dict[str, Any]] = field(default_factory=_default_social_fallback_posts)
    proxy_allowed_hosts: List[str] = field(default_factory=lambda: [
        "cdninstagram.com", "fbcdn.net",
    ])

    # ── dashboard ──
    dashboard_fallback_news: List[Dict[str, str]] = field(default_factory=_default_dashboard_fallback_news)

    # ── feed analysis ──
    tag_translations: Dict[str, str] = field(default_factory=_default_tag_translations)

    # ── observability / platform ──
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None
    sentry_traces_rate: float = 0.1
    otlp_endpoint: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    force_https: bool = False
    slow_request_ms: int = 1000

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        """Read the process environment once. Call at startup only."""
        environment = os.getenv("ENVIRONMENT", "development")
        redis_url = os.getenv("REDIS_URL") or None
        storage_backend = os.getenv("STORAGE_BACKEND") or ("redis" if redis_url else "file")
        s3_bucket = os.getenv("S3_BUCKET") or None
        image_backend = os.getenv("IMAGE_BACKEND") or ("s3" if s3_bucket else "local")

        return cls(
            environment=environment,
            version=os.getenv("DASHBOARD_VERSION", "dashboard-1.0"),
            storage_backend=storage_backend,
            data_dir=os.getenv("DATA_DIR", "data"),
            redis_url=redis_url,
            image_backend=image_backend,
            upload_dir=os.getenv("UPLOAD_DIR", os.path.join("public", "uploads")),
            s3_bucket=s3_bucket,
            s3_prefix=os.getenv("S3_PREFIX", "slideshow/"),
            s3_public_base_url=os.getenv("S3_PUBLIC_BASE_URL") or None,
            aws_region=os.getenv("AWS_REGION", "us-east-1"),
            dashboard_password=os.getenv("DASHBOARD_PASSWORD", "change-me"),
            jwt_secret=os.getenv("JWT_SECRET", "CHANGE_ME_IN_PRODUCTION"),
            jwt_ttl_hours=_env_int("JWT_TTL_HOURS", 24),
            fetch_timeout=float(os.getenv("FEED_FETCH_TIMEOUT", "10")),
            default_page_size=_env_int("DEFAULT_PAGE_SIZE", 12),
            social_fetch_workers=_env_int("SOCIAL_FETCH_WORKERS", 4),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            sentry_dsn=os.getenv("SENTRY_DSN") or None,
            sentry_traces_rate=float(os.getenv("SENTRY_TRACES_RATE", "0.1")),
            otlp_endpoint=os.getenv("OTLP_ENDPOINT") or None,
            cors_origins=os.getenv("CORS_ORIGINS", "*").split(","),
            force_https=_env_bool("FORCE_HTTPS", environment == "production"),
        )


def parse_bool(value: Optional[str]) -> bool:
    """Query-string flag: only the literal 'true' (any case) or '1' turns it on."""
    return (value or "").strip().lower() in ("true", "1")
