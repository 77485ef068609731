"""A JSON-file backed store of notes."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from nparrot.records import (
    AddNoteRequest,
    DeleteNoteRequest,
    ListNotesRequest,
    Note,
    SearchNotesRequest,
    StorageError,
)

log = logging.getLogger(__name__)


def _limited(notes: list[Note], limit: int | None) -> list[Note]:
    return notes if limit is None else notes[: max(limit, 0)]


class NotesManager:
    """Keeps notes in memory and mirrors every change to a JSON file."""

    def __init__(self, storage_path: Union[str, Path]) -> None:
        self._path = Path(storage_path)
        self._lock = threading.RLock()
        self._notes: dict[str, Note] = {}
        try:
            self._notes = self._load()
        except StorageError as exc:
            log.debug("starting with no notes: %s", exc)

    def add_note(self, request: AddNoteRequest) -> Note:
        """Create, store and return a new note."""
        now = datetime.now(timezone.utc)
        note = Note(
            id=str(uuid.uuid4()),
            content=request.content,
            tags=list(request.tags or []),
            created_at=now,
            updated_at=now,
            metadata=dict(request.metadata or {}),
        )
        with self._lock:
            self._notes[note.id] = note
            self._save()
        return note

    def list_notes(self, request: ListNotesRequest) -> list[Note]:
        """Return notes, optionally filtered by tag, sorted and limited."""
        with self._lock:
            notes = [
                n for n in self._notes.values()
                if request.tag is None or request.tag in n.tags
            ]
        sort = request.sort or "newest"
        if sort == "oldest":
            notes.sort(key=lambda n: n.created_at)
        elif sort == "updated":
            notes.sort(key=lambda n: n.updated_at, reverse=True)
        else:
            notes.sort(key=lambda n: n.created_at, reverse=True)
        return _limited(notes, request.limit)

    def search_notes(self, request: SearchNotesRequest) -> list[Note]:
        """Return notes whose content contains the query, newest first."""
        query = request.query.lower()
        with self._lock:
            notes = [
                n for n in self._notes.values()
                if query in n.content.lower()
                and (request.tag is None or request.tag in n.tags)
            ]
        notes.sort(key=lambda n: n.created_at, reverse=True)
        return _limited(notes, request.limit)

    def delete_note(self, request: DeleteNoteRequest) -> bool:
        """Delete a note; return whether it existed."""
        with self._lock:
            existed = self._notes.pop(request.id, None) is not None
            if existed:
                self._save()
        return existed

    def _load(self) -> dict[str, Note]:
        if not self._path.exists():
            return {}
        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Failed to read notes file: {exc}") from exc
        if not content.strip():
            return {}
        try:
            raw = json.loads(content)
            if not isinstance(raw, dict):
                raise ValueError("expected a JSON object of notes")
            return {key: Note.from_dict(value) for key, value in raw.items()}
        except (ValueError, TypeError, AttributeError) as exc:
            raise StorageError(f"Failed to parse notes file: {exc}") from exc

    def _save(self) -> None:
        content = json.dumps(
            {key: note.to_dict() for key, note in self._notes.items()},
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
            raise StorageError(f"Failed to write notes file: {exc}") from exc