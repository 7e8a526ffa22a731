"""
events.py — Culture / events calendar
======================================
CalendarEvent = { id, title, description, location, startDate, endDate }

Stored as one JSON list under "calendar_events", always kept and served in
ascending startDate order. Dates are normalized to ISO-8601 UTC on write.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from errors import NotFoundError, ValidationError
from storage import KeyValueStore

log = logging.getLogger("dashboard.events")

EVENTS_KEY = "calendar_events"

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _to_utc(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = date_parser.isoparse(str(value))
    except ValueError:
        try:
            dt = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(value: Any, field: str) -> str:
    dt = _to_utc(value)
    if dt is None:
        raise ValidationError(f"Invalid {field}")
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def start_key(event: Dict[str, Any]) -> datetime:
    return _to_utc(event.get("startDate")) or _FAR_FUTURE


def sort_events(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(events, key=start_key)


def _clean(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


class EventStore:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def list(self) -> List[Dict[str, Any]]:
        return sort_events(self.store.get(EVENTS_KEY) or [])

    def _save(self, events: List[Dict[str, Any]]) -> None:
        self.store.set(EVENTS_KEY, sort_events(events))

    @staticmethod
    def _next_id(events: List[Dict[str, Any]]) -> str:
        taken = {e.get("id") for e in events}
        n = 1
        while f"manual-event-{n}" in taken:
            n += 1
        return f"manual-event-{n}"

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        title, location = _clean(data.get("title")), _clean(data.get("location"))
        if not title or not data.get("startDate") or not data.get("endDate") or not location:
            raise ValidationError("Title, start date, end date, and location are required")

        events = self.list()
        event = {
            "id": self._next_id(events),
            "title": title,
            "description": _clean(data.get("description")) or f"Event in {location}",
            "startDate": to_iso(data["startDate"], "start date"),
            "endDate": to_iso(data["endDate"], "end date"),
            "location": location,
        }
        events.append(event)
        self._save(events)
        log.info("[EVENTS] created %s (%s)", event["id"], title)
        return event

    def update(self, data: Dict[str, Any]) -> Dict[str, Any]:
        event_id = data.get("id")
        title, location = _clean(data.get("title")), _clean(data.get("location"))
        if not event_id or not title or not data.get("startDate") or not data.get("endDate") or not location:
            raise ValidationError("ID, title, start date, end date, and location are required")

        events = self.list()
        for i, existing in enumerate(events):
            if existing.get("id") == event_id:
                events[i] = {
                    **existing,
                    "title": title,
                    "description": _clean(data.get("description")) or existing.get("description", ""),
                    "startDate": to_iso(data["startDate"], "start date"),
                    "endDate": to_iso(data["endDate"], "end date"),
                    "location": location,
                }
                self._save(events)
                return events[i]
        raise NotFoundError("Event not found")

    def delete(self, event_id: Optional[str]) -> Dict[str, Any]:
        if not event_id:
            raise ValidationError("Event ID is required")
        events = self.list()
        remaining = [e for e in events if e.get("id") != event_id]
        if len(remaining) == len(events):
            raise NotFoundError("Event not found")
        self._save(remaining)
        log.info("[EVENTS] deleted %s", event_id)
        return next(e for e in events if e.get("id") == event_id)
