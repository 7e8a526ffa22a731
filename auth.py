"""
auth.py — Shared-password gate for the dashboard admin
=======================================================
One password protects the admin surface; everything else is public.
Logging in trades the password for a 24h HS256 JWT.

An admin request is accepted when it carries any of:
    Authorization: Bearer <jwt>
    Cookie auth_token=<jwt>
    Authorization: Basic <any-user>:<password>

Usage:
    from auth import auth_bp, require_admin
    app.register_blueprint(auth_bp)

    @admin_bp.route("/api/admin/thing")
    @require_admin
    def thing():
        ...
"""

import hmac
import logging
from datetime import datetime, timezone, timedelta
from functools import wraps
from typing import Optional, Dict, Any

import jwt as pyjwt
from flask import Blueprint, current_app, request, jsonify

log = logging.getLogger("dashboard.auth")

auth_bp = Blueprint("auth", __name__)

JWT_ALGORITHM = "HS256"


def _config():
    return current_app.extensions["dashboard"].config


# ==========================
# TOKENS
# ==========================
def check_password(candidate: Any, password: str) -> bool:
    if not isinstance(candidate, str) or not password:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), password.encode("utf-8"))


def create_token(secret: str, ttl_hours: int = 24) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "authenticated": True,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours),
    }
    return pyjwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> Optional[Dict]:
    """Claims of a valid dashboard token, or None."""
    if not token:
        return None
    try:
        claims = pyjwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except pyjwt.ExpiredSignatureError:
        return None
    except pyjwt.InvalidTokenError:
        return None
    return claims if claims.get("authenticated") else None


# ==========================
# DECORATOR
# ==========================
def _is_authorized() -> bool:
    config = _config()
    header = request.headers.get("Authorization", "")

    if header.startswith("Bearer "):
        if decode_token(header[len("Bearer "):].strip(), config.jwt_secret):
            return True

    token = request.cookies.get("auth_token")
    if token and decode_token(token, config.jwt_secret):
        return True

    basic = request.authorization
    if basic is not None and basic.type == "basic":
        return check_password(basic.password, config.dashboard_password)

    return False


def require_admin(f):
    """Decorator: endpoint requires the dashboard password or a token issued for it."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if not _is_authorized():
            log.info("[AUTH] rejected %s %s", request.method, request.path)
            return jsonify({"error": "Unauthorized"}), 401
        return f(*args, **kwargs)
    return decorated


# ==========================
# ROUTES
# ==========================
@auth_bp.route("/api/auth/login", methods=["POST"])
def login():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid request"}), 400
    password = payload.get("password")
    if not isinstance(password, str):
        return jsonify({"error": "Password missing"}), 400

    config = _config()
    if not check_password(password, config.dashboard_password):
        log.warning("[AUTH] failed login from %s", request.remote_addr)
        return jsonify({"error": "Invalid password"}), 401

    token = create_token(config.jwt_secret, config.jwt_ttl_hours)
    return jsonify({"success": True, "token": token})


@auth_bp.route("/api/auth/validate", methods=["POST"])
def validate():
    payload = request.get_json(silent=True) or {}
    token = payload.get("token") if isinstance(payload, dict) else None
    if not token or not decode_token(token, _config().jwt_secret):
        return jsonify({"valid": False}), 401
    return jsonify({"valid": True})
