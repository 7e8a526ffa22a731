"""
dashboard_api.py — Public dashboard endpoints
==============================================
Everything the rotating display reads. No auth.

    GET /api/news?pageSize=12&refresh=true   mixed, ranked articles
    GET /api/dashboard?refresh=true          news + social + events in one call
    GET /api/calendar                        events, soonest first
    GET /api/social-feeds?refresh=true       social panel feeds
    GET /api/slideshow                       slideshow images in display order
    GET /api/proxy-image?u=<https url>       relay for Instagram/Facebook CDN images
    GET /uploads/<name>                      locally stored slideshow images
    GET /health

Usage in app.py:
    from dashboard_api import dashboard_bp
    app.register_blueprint(dashboard_bp)
"""

import os
import logging
from datetime import datetime, timezone
from urllib.parse import urlparse

import requests
from flask import Blueprint, Response, abort, current_app, request, jsonify, send_from_directory

from articles import dashboard_fallback_news, fallback_articles
from config import parse_bool
from degrade import run_degraded

log = logging.getLogger("dashboard.api")

dashboard_bp = Blueprint("dashboard", __name__)

NO_STORE = "no-store, no-cache, must-revalidate, proxy-revalidate"


def _services():
    return current_app.extensions["dashboard"]


def _no_store(response):
    response.headers["Cache-Control"] = NO_STORE
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


# ── NEWS ──

@dashboard_bp.route("/api/news", methods=["GET"])
def news():
    services = _services()
    pipeline = services.news_pipeline
    page_size = pipeline.clamp_page_size(request.args.get("pageSize"))
    refresh = parse_bool(request.args.get("refresh"))
    articles = run_degraded(pipeline.get_articles, lambda: fallback_articles(services.config),
                            "news", page_size, refresh)
    return _no_store(jsonify({"articles": articles}))


# ── DASHBOARD AGGREGATE ──

def _news_section(services, refresh: bool):
    pipeline = services.news_pipeline
    articles = pipeline.get_articles(pipeline.clamp_page_size(None), refresh)
    return articles or dashboard_fallback_news(services.config)


@dashboard_bp.route("/api/dashboard", methods=["GET"])
def dashboard():
    services = _services()
    config = services.config
    refresh = parse_bool(request.args.get("refresh"))

    try:
        payload = {
            "news": run_degraded(_news_section, lambda: dashboard_fallback_news(config),
                                 "dashboard news", services, refresh),
            "instagramFeeds": run_degraded(services.social_pipeline.get_feeds,
                                           services.social_pipeline.fallback_feeds,
                                           "dashboard social", refresh),
            "events": run_degraded(services.events.list, [], "dashboard events"),
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        log.exception("[DASHBOARD] aggregation failed")
        payload = {
            "news": dashboard_fallback_news(config),
            "instagramFeeds": services.social_pipeline.fallback_feeds(),
            "events": [],
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
            "error": "Failed to fetch dashboard data",
            "message": str(e),
        }

    response = jsonify(payload)
    if refresh:
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    else:
        response.headers["Cache-Control"] = "public, max-age=300"
    return response


# ── CALENDAR / SOCIAL / SLIDESHOW ──

@dashboard_bp.route("/api/calendar", methods=["GET"])
def calendar():
    events = run_degraded(_services().events.list, [], "calendar")
    return jsonify({"events": events})


@dashboard_bp.route("/api/social-feeds", methods=["GET"])
def social_feeds():
    pipeline = _services().social_pipeline
    refresh = parse_bool(request.args.get("refresh"))
    feeds = run_degraded(pipeline.get_feeds, pipeline.fallback_feeds, "social feeds", refresh)
    response = jsonify({"feeds": feeds})
    return _no_store(response) if refresh else response


@dashboard_bp.route("/api/slideshow", methods=["GET"])
def slideshow():
    images = _services().slideshow.list()
    return jsonify({"images": images})


# ── IMAGE PROXY ──

def is_allowed_image_host(url: str, allowed_hosts) -> bool:
    """https only, and the host must be (a subdomain of) an allowed CDN."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme != "https" or not parsed.hostname:
        return False
    host = parsed.hostname.lower()
    return any(host == h or host.endswith("." + h) for h in allowed_hosts)


@dashboard_bp.route("/api/proxy-image", methods=["GET"])
def proxy_image():
    services = _services()
    config = services.config
    url = (request.args.get("u") or "").strip()

    if not url:
        return jsonify({"error": "Missing 'u' parameter"}), 400
    if not is_allowed_image_host(url, config.proxy_allowed_hosts):
        return jsonify({"error": "URL not allowed"}), 400

    try:
        # No redirects: every host fetched must pass the allow-list
        upstream = services.session.get(url, timeout=config.fetch_timeout, allow_redirects=False, headers={
            "User-Agent": config.user_agent,
            "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
            "Referer": "https://www.instagram.com/",
        })
    except requests.RequestException as e:
        log.warning("[PROXY] fetch failed for %s: %s", url, e)
        return jsonify({"error": "Upstream fetch failed"}), 502

    if not 200 <= upstream.status_code < 300:
        log.warning("[PROXY] upstream %s for %s", upstream.status_code, url)
        return jsonify({"error": f"Upstream responded {upstream.status_code}"}), 502

    content_type = upstream.headers.get("Content-Type", "image/jpeg")
    response = Response(upstream.content, status=200, content_type=content_type)
    response.headers["Cache-Control"] = "public, max-age=3600"
    return response


@dashboard_bp.route("/uploads/<path:filename>", methods=["GET"])
def uploaded_image(filename):
    config = _services().config
    if config.image_backend != "local":
        abort(404)
    return send_from_directory(os.path.abspath(config.upload_dir), filename)


@dashboard_bp.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": _services().config.version})
