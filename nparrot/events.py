"""A JSON-file backed store of events."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from nparrot.records import (
    AddEventRequest,
    DeleteEventRequest,
    Event,
    ListEventsRequest,
    SearchEventsRequest,
    StorageError,
    _parse_timestamp,
)

log = logging.getLogger(__name__)


def _limited(events: list[Event], limit: int | None) -> list[Event]:
    return events if limit is None else events[: max(limit, 0)]


def _request_time(value: Optional[str], name: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return _parse_timestamp(value)
    except ValueError as exc:
        raise ValueError(f"Invalid {name} format: {exc}") from exc


def _matches(event: Event, event_type: Optional[str], tag: Optional[str]) -> bool:
    return (event_type is None or event.event_type == event_type) and (
        tag is None or tag in event.tags
    )


def _start_time_key(event: Event) -> tuple:
    if event.start_time is not None:
        return (0, event.start_time)
    return (1, event.created_at)


class EventsManager:
    """Keeps events in memory and mirrors every change to a JSON file."""

    def __init__(self, storage_path: Union[str, Path]) -> None:
        self._path = Path(storage_path)
        self._lock = threading.RLock()
        self._events: dict[str, Event] = {}
        try:
            self._events = self._load()
        except StorageError as exc:
            log.debug("starting with no events: %s", exc)

    def add_event(self, request: AddEventRequest) -> Event:
        """Create, store and return a new event; raise ValueError on bad times."""
        now = datetime.now(timezone.utc)
        start_time = _request_time(request.start_time, "start_time")
        end_time = _request_time(request.end_time, "end_time")
        event = Event(
            id=str(uuid.uuid4()),
            title=request.title,
            description=request.description,
            event_type=request.event_type,
            tags=list(request.tags or []),
            created_at=now,
            start_time=start_time,
            end_time=end_time,
            metadata=dict(request.metadata or {}),
        )
        with self._lock:
            self._events[event.id] = event
            self._save()
        return event

    def list_events(self, request: ListEventsRequest) -> list[Event]:
        """Return events filtered by type and tag, sorted and limited."""
        with self._lock:
            events = [
                e for e in self._events.values()
                if _matches(e, request.event_type, request.tag)
            ]
        sort = request.sort or "newest"
        if sort == "oldest":
            events.sort(key=lambda e: e.created_at)
        elif sort == "start_time":
            events.sort(key=_start_time_key)
        else:
            events.sort(key=lambda e: e.created_at, reverse=True)
        return _limited(events, request.limit)

    def search_events(self, request: SearchEventsRequest) -> list[Event]:
        """Return events whose title or description contains the query, newest first."""
        query = request.query.lower()

        def hit(event: Event) -> bool:
            text_match = query in event.title.lower() or (
                event.description is not None and query in event.description.lower()
            )
            return text_match and _matches(event, request.event_type, request.tag)

        with self._lock:
            events = [e for e in self._events.values() if hit(e)]
        events.sort(key=lambda e: e.created_at, reverse=True)
        return _limited(events, request.limit)

    def delete_event(self, request: DeleteEventRequest) -> bool:
        """Delete an event; return whether it existed."""
        with self._lock:
            existed = self._events.pop(request.id, None) is not None
            if existed:
                self._save()
        return existed

    def _load(self) -> dict[str, Event]:
        if not self._path.exists():
            return {}
        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to read events file: {exc}") from exc
        if not content.strip():
            return {}
        try:
            raw = json.loads(content)
            if not isinstance(raw, dict):
                raise ValueError("expected a JSON object of events")
            return {key: Event.from_dict(value) for key, value in raw.items()}
        except (ValueError, TypeError, AttributeError) as exc:
            raise StorageError(f"Failed to parse events file: {exc}") from exc

    def _save(self) -> None:
        content = json.dumps(
            {key: event.to_dict() for key, event in self._events.items()},
            indent=2,
            ensure_ascii=False,
        )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to create storage directory: {exc}") from exc
        try:
            self._path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to write events file: {exc}") from exc