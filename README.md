# nparrot

Building blocks for a server that lets an AI agent keep notes and events,
clean up its tool-call parameters, remind itself to report progress, and
drive the `goose` command-line agent.

## Modules

- `nparrot.records`: the `Note` and `Event` dataclasses (with `to_dict` and
  `from_dict` for their JSON form, timestamps as RFC 3339 in UTC), the request
  dataclasses `AddNoteRequest`, `AddEventRequest`, `ListNotesRequest`,
  `ListEventsRequest`, `SearchNotesRequest`, `SearchEventsRequest`,
  `DeleteNoteRequest`, `DeleteEventRequest`, and `StorageError`.
- `nparrot.notes`: `NotesManager`, a store of notes kept in memory and written
  to a JSON file after every change.
- `nparrot.events`: `EventsManager`, the same for events.
- `nparrot.validation`: `sanitize_json_parameters`, `extract_error_context`
  and `ParameterError`.
- `nparrot.progress`: `ProgressTracker`.
- `nparrot.goose_types`: request dataclasses for `goose` commands and
  `CommandResult`.
- `nparrot.goose_commands`: `GooseCommands` and `is_recoverable_error`.

## Notes and events

```python
from nparrot.notes import NotesManager
from nparrot.records import AddNoteRequest, ListNotesRequest, SearchNotesRequest

notes = NotesManager("data/notes.json")
notes.add_note(AddNoteRequest(content="Buy milk", tags=["shopping"]))
for note in notes.search_notes(SearchNotesRequest(query="milk")):
    print(note.id, note.content)
notes.list_notes(ListNotesRequest(tag="shopping", sort="oldest", limit=5))
```

- Each new record gets a random UUID as its id.
- `list_notes` sorts by `"newest"` (the default and the fallback for any other
  value), `"oldest"` or `"updated"`. `list_events` sorts by `"newest"`,
  `"oldest"` or `"start_time"`; with `"start_time"`, events that have a start
  time come first in start order, the rest follow by creation time.
- Searches are case-insensitive substring matches (note content; event title
  or description), can be filtered by tag (and, for events, by
  `event_type`), and come back newest first.
- `limit` cuts the result list.
- `delete_note` / `delete_event` return whether the record existed.
- `add_event` takes `start_time` and `end_time` as RFC 3339 strings with an
  offset and raises `ValueError` if one cannot be parsed.
- The JSON file is read once when the manager is created; a missing or empty
  file gives an empty store, and an unreadable or malformed one is logged and
  also treated as empty. Writing it creates parent directories; if that or the
  write fails, `StorageError` is raised.

## Sanitising parameters

```python
from nparrot.validation import sanitize_json_parameters

sanitize_json_parameters('{"message": "hi"} trailing text')  # '{"message":"hi"}'
sanitize_json_parameters("")                                   # '{}'
```

The first complete JSON object is kept and anything after it dropped. If that
fails, the whole text is parsed, and failing that a repair is tried: `\n`,
`\t` and `\r` escapes are unescaped, bare members are wrapped in braces, and
unclosed braces and brackets are closed. Strings and keys are trimmed, empty
keys are dropped, and the result is compact JSON with sorted keys. If nothing
parses, `ParameterError` (a `ValueError`) is raised.
`extract_error_context(message)` turns a parser message into a short hint.

## Progress reminders

`ProgressTracker.mark_progress_sent(session_id)` records the time of a
progress update. `should_send_progress_reminder(session_id, tool_name)` is
true for the tools in `PROGRESS_REQUIRED_TOOLS` when the session has sent no
progress update, or none in the last 10 seconds. `create_progress_reminder`
and `create_comprehensive_instructions` return the reminder texts.

## Running goose

```python
from nparrot.goose_commands import GooseCommands
from nparrot.goose_types import RunTaskRequest

goose = GooseCommands()  # program="goose", timeout=300.0, retries=3, retry_delay=5.0
result = goose.run_task(RunTaskRequest(instructions="Summarise the README"))
print(result.success, result.output or result.error)
```

- Every method runs the program and returns a `CommandResult` (`success`,
  `output`, `error`, `exit_code`; `to_dict()` for JSON). On success the output
  ends with the line `COMPLETION_MARKER`.
- A failure that `is_recoverable_error` accepts (known transient messages, or
  exit codes 1, 2, 124, 137, 143), a start failure and a timeout are retried
  after `retry_delay` seconds, up to `retries` attempts. A timeout gives exit
  code -2.
- `run_task` writes inline instructions to a temporary file, refuses empty
  instructions, and refuses the same task again while it is running (within
  10 seconds).
- `start_session` refuses a session id that is already active;
  `remove_session` needs an id, a name or a regex; `has_active_sessions` tells
  whether any session is running; `kill_all_sessions` forgets all state and
  runs `pkill -f` on the program name.
- Also: `list_sessions`, `export_session`, `configure`, `update`, `info`,
  `version`, `help`, `mcp_list`, `mcp_install`, `project_management`,
  `list_projects`.

## What this package does not do

It has no command-line program and no server: it does not send or receive
messages, speak any chat or tool-call protocol, or expose these tools to an
agent. It is a library to be wired into such a server.

## Installing and testing

```
pip install .
pip install .[test]
pytest
```