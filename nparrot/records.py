"""Note and event records, and the requests that create, query and delete them."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?(Z|z|[+-]\d{2}:\d{2})"
)


class StorageError(Exception):
    """Raised when a record store cannot be read or written."""


def _parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp with an explicit offset into a UTC datetime."""
    if not isinstance(text, str):
        raise ValueError(f"timestamp must be a string, not {type(text).__name__}")
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, offset = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    if offset in ("Z", "z"):
        zone = timezone.utc
    else:
        hours, minutes = int(offset[1:3]), int(offset[4:6])
        if hours > 23 or minutes > 59:
            raise ValueError(f"invalid offset in timestamp: {text!r}")
        delta = timedelta(hours=hours, minutes=minutes)
        zone = timezone(-delta if offset[0] == "-" else delta)
    try:
        moment = datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), microsecond,
            tzinfo=zone,
        )
    except ValueError as exc:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}") from exc
    return moment.astimezone(timezone.utc)


def _format_timestamp(moment: datetime) -> str:
    text = moment.astimezone(timezone.utc).isoformat()
    return text[:-6] + "Z"


def _optional_timestamp(value: Any) -> Optional[datetime]:
    return None if value is None else _parse_timestamp(value)


def _format_optional(moment: Optional[datetime]) -> Optional[str]:
    return None if moment is None else _format_timestamp(moment)


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _optional_text(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string or null")
    return value


def _tags(data: Mapping[str, Any]) -> list[str]:
    value = data["tags"]
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise ValueError("field 'tags' must be a list of strings")
    return list(value)


def _metadata(data: Mapping[str, Any]) -> dict[str, str]:
    value = data["metadata"]
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError("field 'metadata' must map strings to strings")
    return dict(value)


@dataclass
class Note:
    """A free-text note with tags and metadata."""

    id: str
    content: str
    tags: list[str]
    created_at: datetime
    updated_at: datetime
    metadata: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the note."""
        return {
            "id": self.id,
            "content": self.content,
            "tags": list(self.tags),
            "created_at": _format_timestamp(self.created_at),
            "updated_at": _format_timestamp(self.updated_at),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Note":
        """Build a note from its JSON form; raise ValueError if it is malformed."""
        try:
            return cls(
                id=_text(data, "id"),
                content=_text(data, "content"),
                tags=_tags(data),
                created_at=_parse_timestamp(data["created_at"]),
                updated_at=_parse_timestamp(data["updated_at"]),
                metadata=_metadata(data),
            )
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r} in note") from exc


@dataclass
class Event:
    """A titled event of some type, optionally with a start and end time."""

    id: str
    title: str
    description: Optional[str]
    event_type: str
    tags: list[str]
    created_at: datetime
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    metadata: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the event."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type,
            "tags": list(self.tags),
            "created_at": _format_timestamp(self.created_at),
            "start_time": _format_optional(self.start_time),
            "end_time": _format_optional(self.end_time),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        """Build an event from its JSON form; raise ValueError if it is malformed."""
        try:
            return cls(
                id=_text(data, "id"),
                title=_text(data, "title"),
                description=_optional_text(data, "description"),
                event_type=_text(data, "event_type"),
                tags=_tags(data),
                created_at=_parse_timestamp(data["created_at"]),
                start_time=_optional_timestamp(data.get("start_time")),
                end_time=_optional_timestamp(data.get("end_time")),
                metadata=_metadata(data),
            )
        except KeyError as exc:
            raise ValueError(f"missing field {exc.args[0]!r} in event") from exc


@dataclass
class AddNoteRequest:
    """Content, tags and metadata of a new note."""

    content: str
    tags: Optional[list[str]] = None
    metadata: Optional[dict[str, str]] = None


@dataclass
class AddEventRequest:
    """Fields of a new event; times are RFC 3339 strings."""

    title: str
    event_type: str
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    metadata: Optional[dict[str, str]] = None


@dataclass
class ListNotesRequest:
    """Filter, limit and sort order ('newest', 'oldest', 'updated') for notes."""

    tag: Optional[str] = None
    limit: Optional[int] = None
    sort: Optional[str] = None


@dataclass
class ListEventsRequest:
    """Filter, limit and sort order ('newest', 'oldest', 'start_time') for events."""

    event_type: Optional[str] = None
    tag: Optional[str] = None
    limit: Optional[int] = None
    sort: Optional[str] = None


@dataclass
class SearchNotesRequest:
    """A case-insensitive search in note content."""

    query: str
    tag: Optional[str] = None
    limit: Optional[int] = None


@dataclass
class SearchEventsRequest:
    """A case-insensitive search in event titles and descriptions."""

    query: str
    event_type: Optional[str] = None
    tag: Optional[str] = None
    limit: Optional[int] = None


@dataclass
class DeleteNoteRequest:
    """The id of the note to delete."""

    id: str


@dataclass
class DeleteEventRequest:
    """The id of the event to delete."""

    id: str