"""
platform_infra.py — HTTP platform layer
========================================
Security headers (HSTS/CSP) and CORS for the /api/* surface.

The dashboard renders images from arbitrary feed hosts, so img-src is
open while scripts and connections stay same-origin.
"""

import logging

from flask_cors import CORS
from flask_talisman import Talisman

log = logging.getLogger("dashboard.platform")

CSP = {
    "default-src": "'self'",
    "script-src": "'self' 'unsafe-inline'",
    "style-src": "'self' 'unsafe-inline' https://fonts.googleapis.com",
    "font-src": "'self' https://fonts.gstatic.com",
    "img-src": "* data: blob:",
    "connect-src": "'self'",
}


def init_platform(app, config):
    """Initialize security headers and CORS."""
    # ── HSTS + CSP + Security Headers ──
    Talisman(app, force_https=config.force_https,
             strict_transport_security=config.force_https, strict_transport_security_max_age=31536000,
             content_security_policy=CSP, session_cookie_secure=config.force_https,
             session_cookie_http_only=True)

    CORS(app, resources={r"/api/*": {"origins": config.cors_origins}})

    log.info("[PLATFORM] Initialized (force_https=%s, cors=%s)", config.force_https, ",".join(config.cors_origins))
