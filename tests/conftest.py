"""
tests/conftest.py — Shared fixtures for the dashboard test suite
=================================================================
No network: every feed and image fetch goes through FakeSession, which
serves canned responses keyed by URL (query string ignored, so refresh
cache-busters still hit the same entry).
"""

import os
import sys
import base64
import tempfile

import pytest
import requests

# Setup Flask test env before app.py builds its module-level app
_TMP = tempfile.mkdtemp(prefix="dashboard-tests-")
os.environ.setdefault("DATA_DIR", os.path.join(_TMP, "data"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("DASHBOARD_PASSWORD", "secret")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ["TESTING"] = "1"

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import DashboardConfig  # noqa: E402
from storage import FileStore  # noqa: E402

PASSWORD = "secret"
JWT_SECRET = "test-jwt-secret"

NEWS_A = "https://feeds.example.com/a.xml"
NEWS_B = "https://feeds.example.com/b.xml"
NEWS_C = "https://feeds.example.com/c.xml"
SOCIAL_1 = "https://rss.example.com/porsche.xml"
SOCIAL_2 = "https://rss.example.com/bbdo.xml"


# ═══════════════════════════════════════════
# FAKE HTTP
# ═══════════════════════════════════════════

class FakeResponse:
    def __init__(self, status_code=200, text="", content=None, headers=None):
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self.headers = headers or {}


class FakeSession:
    """requests.Session stand-in. routes: url -> FakeResponse | Exception."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, headers=None, timeout=None, **kwargs):
        self.calls.append({"url": url, "headers": headers or {}, "timeout": timeout, **kwargs})
        result = self.routes.get(url, self.routes.get(url.split("?t=")[0].split("&t=")[0]))
        if result is None:
            return FakeResponse(404, "not found")
        if isinstance(result, Exception):
            raise result
        return result


def network_error():
    return requests.ConnectionError("connection refused")


# ═══════════════════════════════════════════
# RSS BUILDERS
# ═══════════════════════════════════════════

def rss_item(title="Story", link="https://news.example.com/story", image=None,
             pub_date="Tue, 10 Jun 2025 08:30:00 +0000", description="Some text", extra=""):
    media = f'<media:content url="{image}" medium="image"/>' if image else ""
    return (
        "<item>"
        f"<title>{title}</title>"
        f"<link>{link}</link>"
        f"<pubDate>{pub_date}</pubDate>"
        f"<description>{description}</description>"
        f"{media}{extra}"
        "</item>"
    )


def rss_doc(title, items, channel_extra=""):
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/" '
        'xmlns:content="http://purl.org/rss/1.0/modules/content/">'
        f"<channel><title>{title}</title><link>https://news.example.com</link>"
        f"<description>{title} feed</description>{channel_extra}"
        + "".join(items)
        + "</channel></rss>"
    )


def feed_of(source, count, day0=20, with_images=True):
    """count items, newest first, each with a distinct image."""
    items = []
    for i in range(count):
        image = f"https://img.example.com/{source.lower()}{i}.jpg" if with_images else None
        items.append(rss_item(
            title=f"{source}{i}",
            link=f"https://news.example.com/{source.lower()}/{i}",
            image=image,
            pub_date=f"{day0 - i:02d} Jun 2025 08:00:00 +0000",
        ))
    return rss_doc(f"{source} Channel", items)


def ok(xml):
    return FakeResponse(200, xml)


# ═══════════════════════════════════════════
# CONFIG / STORES / APP
# ═══════════════════════════════════════════

def news_feed(feed_id, url, title, active=True):
    return {"id": feed_id, "url": url, "title": title, "description": "", "isActive": active}


@pytest.fixture
def config(tmp_path):
    return DashboardConfig(
        data_dir=str(tmp_path / "data"),
        upload_dir=str(tmp_path / "uploads"),
        dashboard_password=PASSWORD,
        jwt_secret=JWT_SECRET,
        default_news_feeds=[
            news_feed("feed-a", NEWS_A, "A"),
            news_feed("feed-b", NEWS_B, "B"),
        ],
        default_social_feeds=[
            news_feed("porsche", SOCIAL_1, "Porsche Motorsport"),
            news_feed("bbdo", SOCIAL_2, "BBDO Instagram"),
        ],
    )


@pytest.fixture
def store(config):
    return FileStore(config.data_dir)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def dashboard_app(config, session):
    from app import create_app
    app = create_app(config, session=session)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(dashboard_app):
    with dashboard_app.test_client() as c:
        yield c


def basic_auth(password=PASSWORD):
    token = base64.b64encode(f"admin:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def admin_headers():
    return basic_auth()
