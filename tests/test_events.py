import json
from datetime import datetime, timezone

import pytest

from nparrot.events import EventsManager
from nparrot.records import (
    AddEventRequest,
    DeleteEventRequest,
    ListEventsRequest,
    SearchEventsRequest,
    StorageError,
)


def _record(event_id, title, event_type, created, start=None, description=None, tags=()):
    return {
        "id": event_id,
        "title": title,
        "description": description,
        "event_type": event_type,
        "tags": list(tags),
        "created_at": created,
        "start_time": start,
        "end_time": None,
        "metadata": {},
    }


@pytest.fixture
def seeded(tmp_path):
    path = tmp_path / "events.json"
    records = [
        _record("a", "Team sync", "meeting", "2024-01-01T00:00:00Z",
                start="2024-06-02T10:00:00Z", tags=["work"]),
        _record("b", "Pay rent", "task", "2024-01-02T00:00:00Z",
                description="monthly SYNC with bank", tags=["home"]),
        _record("c", "Dentist", "reminder", "2024-01-03T00:00:00Z",
                start="2024-06-01T08:00:00Z", tags=["home"]),
        _record("d", "Review", "meeting", "2024-01-04T00:00:00Z", tags=["work"]),
    ]
    path.write_text(json.dumps({r["id"]: r for r in records}), encoding="utf-8")
    return EventsManager(path)


def _ids(events):
    return [e.id for e in events]


def test_add_event_parses_times(tmp_path):
    manager = EventsManager(tmp_path / "events.json")
    event = manager.add_event(AddEventRequest(
        title="Launch",
        event_type="meeting",
        start_time="2024-06-01T09:00:00+02:00",
        end_time="2024-06-01T10:00:00Z",
    ))
    assert event.start_time == datetime.fromisoformat("2024-06-01T09:00:00+02:00")
    assert event.start_time.tzinfo == timezone.utc
    assert event.end_time == datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
    assert event.tags == [] and event.metadata == {}


def test_invalid_start_time_is_rejected(tmp_path):
    manager = EventsManager(tmp_path / "events.json")
    with pytest.raises(ValueError, match="Invalid start_time format"):
        manager.add_event(AddEventRequest("x", "task", start_time="tomorrow"))
    assert manager.list_events(ListEventsRequest()) == []


def test_invalid_end_time_is_rejected(tmp_path):
    manager = EventsManager(tmp_path / "events.json")
    with pytest.raises(ValueError, match="Invalid end_time format"):
        manager.add_event(AddEventRequest("x", "task", end_time="2024-06-01"))


def test_added_event_persists(tmp_path):
    path = tmp_path / "events.json"
    event = EventsManager(path).add_event(AddEventRequest("Call", "task", description="d"))
    assert EventsManager(path).list_events(ListEventsRequest()) == [event]


def test_default_sort_newest_first(seeded):
    assert _ids(seeded.list_events(ListEventsRequest())) == ["d", "c", "b", "a"]


def test_sort_oldest(seeded):
    assert _ids(seeded.list_events(ListEventsRequest(sort="oldest"))) == ["a", "b", "c", "d"]


def test_sort_start_time_puts_untimed_last(seeded):
    assert _ids(seeded.list_events(ListEventsRequest(sort="start_time"))) == ["c", "a", "b", "d"]


def test_filters_and_limit(seeded):
    assert _ids(seeded.list_events(ListEventsRequest(event_type="meeting"))) == ["d", "a"]
    assert _ids(seeded.list_events(ListEventsRequest(tag="home"))) == ["c", "b"]
    assert _ids(seeded.list_events(ListEventsRequest(tag="work", event_type="task"))) == []
    assert _ids(seeded.list_events(ListEventsRequest(limit=1))) == ["d"]


def test_search_title_and_description(seeded):
    assert _ids(seeded.search_events(SearchEventsRequest("sync"))) == ["b", "a"]


def test_search_filters(seeded):
    assert _ids(seeded.search_events(SearchEventsRequest("sync", event_type="meeting"))) == ["a"]
    assert _ids(seeded.search_events(SearchEventsRequest("sync", tag="home"))) == ["b"]
    assert _ids(seeded.search_events(SearchEventsRequest("sync", limit=1))) == ["b"]


def test_delete_event(seeded, tmp_path):
    assert seeded.delete_event(DeleteEventRequest("a")) is True
    assert seeded.delete_event(DeleteEventRequest("a")) is False
    reloaded = EventsManager(tmp_path / "events.json")
    assert _ids(reloaded.list_events(ListEventsRequest(sort="oldest"))) == ["b", "c", "d"]


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "events.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert EventsManager(path).list_events(ListEventsRequest()) == []


def test_unwritable_store_raises(tmp_path):
    path = tmp_path / "store"
    path.mkdir()
    manager = EventsManager(path)
    with pytest.raises(StorageError, match="Failed to write events file"):
        manager.add_event(AddEventRequest("x", "task"))