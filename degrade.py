"""
degrade.py — Best-effort policy for display surfaces.

Ingestion and aggregation errors are non-fatal: a lobby dashboard should
always show something. Instead of repeating try/except blocks around
every feed fetch and every dashboard section, wrap the call once:

    events = run_degraded(load_events, fallback=list, label="events")

`fallback` is either a value or a zero-argument factory; factories are
preferred for mutable fallbacks so callers never share one list.
"""

import logging
from typing import Any, Callable

log = logging.getLogger("dashboard.degrade")


def _fallback_value(fallback: Any) -> Any:
    return fallback() if callable(fallback) else fallback


def run_degraded(fn: Callable, fallback: Any, label: str = "", *args, **kwargs) -> Any:
    """Call fn; on any exception log it and return the fallback instead."""
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        log.warning("[DEGRADE] %s failed, using fallback: %s", label or getattr(fn, "__name__", "call"), e)
        log.debug("[DEGRADE] %s traceback", label, exc_info=True)
        return _fallback_value(fallback)
