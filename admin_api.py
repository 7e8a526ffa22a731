"""
admin_api.py — Admin panel JSON API
====================================
Feed, social feed, post-count, event and slideshow management plus the
feed analyzer. Every route requires the dashboard password (see auth.py).

Failures are DashboardError subclasses rendered as {"error": message}:
    400 validation / duplicate URL, 404 unknown id, 500 storage.

Usage in app.py:
    from admin_api import admin_bp
    app.register_blueprint(admin_bp)
"""

import logging

from flask import Blueprint, current_app, request, jsonify

from auth import require_admin
from errors import DashboardError, ValidationError, render_error
from feed_analysis import analyze_feed
from feed_registry import is_absolute_url
from rss_parser import FeedError

log = logging.getLogger("dashboard.admin")

admin_bp = Blueprint("admin", __name__)


def _services():
    return current_app.extensions["dashboard"]


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


@admin_bp.errorhandler(DashboardError)
def _handle_dashboard_error(err):
    if err.status_code >= 500:
        log.error("[ADMIN] %s %s failed: %s", request.method, request.path, err.message)
    return render_error(err)


# ==========================
# FEED REGISTRIES
# ==========================
def _list_feeds(registry):
    return jsonify({"feeds": registry.list_all()})


def _create_feed(registry):
    body = _json_body()
    feed = registry.create(body.get("url"), body.get("title"), body.get("description", ""))
    return jsonify({"success": True, "feed": feed}), 201


def _feed_detail(registry, feed_id):
    if request.method == "GET":
        return jsonify({"feed": registry.get(feed_id)})
    if request.method == "PUT":
        body = _json_body()
        feed = registry.replace(feed_id, body.get("url"), body.get("title"), body.get("description", ""))
        return jsonify({"success": True, "feed": feed})
    if request.method == "PATCH":
        feed = registry.patch(feed_id, _json_body())
        return jsonify({"success": True, "feed": feed})
    registry.delete(feed_id)
    return jsonify({"success": True, "message": "RSS feed deleted successfully"})


@admin_bp.route("/api/admin/rss-feeds", methods=["GET", "POST"])
@require_admin
def rss_feeds():
    registry = _services().news_registry
    if request.method == "POST":
        return _create_feed(registry)
    return _list_feeds(registry)


@admin_bp.route("/api/admin/rss-feeds/<feed_id>", methods=["GET", "PUT", "PATCH", "DELETE"])
@require_admin
def rss_feed(feed_id):
    return _feed_detail(_services().news_registry, feed_id)


# Registered before the <feed_id> rule so "settings" is never taken as an id
@admin_bp.route("/api/admin/social-rss-feeds/settings", methods=["GET", "PUT"])
@require_admin
def social_settings():
    settings = _services().post_settings
    if request.method == "PUT":
        body = _json_body()
        feed_id = body.get("feedId") or None
        count = settings.set_count(body.get("count"), feed_id)
        return jsonify({"success": True, "count": count, "feedId": feed_id})
    return jsonify({
        "count": settings.global_count(),
        "allowed": list(settings.allowed),
        "overrides": settings.overrides(),
    })


@admin_bp.route("/api/admin/social-rss-feeds", methods=["GET", "POST"])
@require_admin
def social_rss_feeds():
    registry = _services().social_registry
    if request.method == "POST":
        return _create_feed(registry)
    return _list_feeds(registry)


@admin_bp.route("/api/admin/social-rss-feeds/<feed_id>", methods=["GET", "PUT", "PATCH", "DELETE"])
@require_admin
def social_rss_feed(feed_id):
    return _feed_detail(_services().social_registry, feed_id)


# ==========================
# EVENTS
# ==========================
@admin_bp.route("/api/admin/events", methods=["GET", "POST", "PUT", "DELETE"])
@require_admin
def events():
    store = _services().events
    if request.method == "POST":
        event = store.create(_json_body())
        return jsonify({"success": True, "event": event, "message": "Event created successfully"})
    if request.method == "PUT":
        event = store.update(_json_body())
        return jsonify({"success": True, "event": event, "message": "Event updated successfully"})
    if request.method == "DELETE":
        store.delete(request.args.get("id"))
        return jsonify({"success": True, "message": "Event deleted successfully"})
    return jsonify({"success": True, "events": store.list()})


# ==========================
# SLIDESHOW
# ==========================
@admin_bp.route("/api/admin/slideshow", methods=["GET", "POST", "DELETE"])
@require_admin
def slideshow():
    show = _services().slideshow
    if request.method == "POST":
        replace_all = request.form.get("replaceAll") == "true"
        uploaded = show.upload(request.files.getlist("images"), replace_all)
        return jsonify({"message": f"{len(uploaded)} images uploaded successfully", "files": uploaded})
    if request.method == "DELETE":
        show.delete(request.args.get("filename"))
        return jsonify({"message": "Image deleted successfully"})
    return jsonify({"images": show.list()})


@admin_bp.route("/api/admin/slideshow/reorder", methods=["POST"])
@require_admin
def slideshow_reorder():
    body = _json_body()
    renamed = _services().slideshow.reorder(body.get("imageOrder"))
    return jsonify({"message": "Images reordered successfully", "images": renamed})


# ==========================
# FEED ANALYSIS
# ==========================
@admin_bp.route("/api/admin/analyze-rss", methods=["POST"])
@require_admin
def analyze_rss():
    services = _services()
    url = _json_body().get("url")
    if not url:
        raise ValidationError("URL is required")
    if not is_absolute_url(url):
        raise ValidationError("Invalid URL format")

    try:
        parsed = services.fetcher.fetch(url.strip(), refresh=True)
    except FeedError as e:
        raise ValidationError(f"Failed to fetch RSS feed: {e}")
    return jsonify(analyze_feed(parsed, services.news_extractor, services.config.tag_translations))
