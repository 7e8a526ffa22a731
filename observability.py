"""
observability.py — Logging, error tracking, tracing
====================================================
Covers: log setup, OpenTelemetry tracing (feed fetches run in
"feed.fetch" spans), Sentry error tracking, request timing headers.

Setup in app.py:
    from observability import init_observability
    init_observability(app, config)
"""

import logging
import time
import uuid

from flask import request, g

# ── OpenTelemetry: distributed tracing ──
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource

# ── Sentry: error tracking ──
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

log = logging.getLogger("dashboard.obs")

_provider_installed = False


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        format="%(asctime)s %(message)s")


def _init_tracing(app, config):
    global _provider_installed

    # The global provider can only be set once per process
    if not _provider_installed:
        resource = Resource.create({"service.name": "agency-dashboard", "service.version": config.version})
        provider = TracerProvider(resource=resource)

        if config.otlp_endpoint:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
            exporter = OTLPSpanExporter(endpoint=config.otlp_endpoint)
            provider.add_span_processor(BatchSpanProcessor(exporter))
            log.info("[OBS] exporting traces to %s", config.otlp_endpoint)

        trace.set_tracer_provider(provider)
        _provider_installed = True

    # Auto-instrument Flask
    try:
        from opentelemetry.instrumentation.flask import FlaskInstrumentor
        FlaskInstrumentor().instrument_app(app)
    except Exception as e:
        log.warning("[OBS] Flask instrumentation unavailable: %s", e)

    # Auto-instrument Redis
    if config.storage_backend == "redis":
        try:
            from opentelemetry.instrumentation.redis import RedisInstrumentor
            RedisInstrumentor().instrument()
        except Exception as e:
            log.warning("[OBS] Redis instrumentation unavailable: %s", e)


def init_observability(app, config):
    """Initialize logging, tracing and error tracking. Call once per app."""
    configure_logging(config.log_level)

    # ── 1. OpenTelemetry distributed tracing ──
    _init_tracing(app, config)

    # ── 2. Sentry error tracking ──
    if config.sentry_dsn:
        sentry_sdk.init(
            dsn=config.sentry_dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=config.sentry_traces_rate,
            environment=config.environment,
            release=config.version,
        )
        log.info("[OBS] Sentry initialized")

    # ── 3. Request timing middleware ──
    slow_ms = config.slow_request_ms

    @app.before_request
    def _start_timer():
        g.start_time = time.time()
        g.trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4())[:16])

    @app.after_request
    def _record_timing(response):
        if hasattr(g, "start_time"):
            latency = (time.time() - g.start_time) * 1000
            response.headers["X-Response-Time-Ms"] = str(int(latency))
            response.headers["X-Trace-Id"] = getattr(g, "trace_id", "")
            if latency > slow_ms:
                log.warning("[OBS] slow request %s %s %dms status=%s",
                            request.method, request.path, int(latency), response.status_code)
        return response

    log.info("[OBS] Observability initialized (tracing, error-tracking, timing)")
