"""Tracking of progress updates sent while tools run, and reminders to send them."""

from __future__ import annotations

import threading
import time

__all__ = ["PROGRESS_REQUIRED_TOOLS", "PROGRESS_INTERVAL", "ProgressTracker"]

PROGRESS_REQUIRED_TOOLS: tuple[str, ...] = (
    "addnote",
    "addvent",
    "searchnotes",
    "searchevents",
    "listnotes",
    "listevents",
    "runtask",
    "startsession",
)

PROGRESS_INTERVAL = 10.0
"""Seconds after a progress update before another one is due."""

_COMPREHENSIVE_INSTRUCTIONS = "\n".join(
    [
        "ZERO TOLERANCE WORKFLOW ENFORCEMENT:",
        "",
        "1. INSTANT PROGRESS REQUIRED: The MOMENT you start processing, send progress",
        "2. EXECUTE OPERATION: Use the requested tool (addnote, searchnotes, etc.)",
        "3. MANDATORY FINAL SEND: You MUST end with 'send' - NO EXCEPTIONS EVER",
        "",
        "ABSOLUTELY REQUIRED PATTERN:",
        "```json",
        '{"tool": "progress", "arguments": {"message": "Processing your [operation] request..."}}',
        '{"tool": "[operation]", "arguments": {...}}',
        '{"tool": "send", "arguments": {"message": "[Operation] completed: [results]"}}',
        "```",
        "",
        "CRITICAL ENFORCEMENT RULES:",
        "- EVERY user message MUST trigger progress -> operation -> send",
        "- NO EXCEPTIONS for simple requests - ALL need progress",
        "- NO EXCEPTIONS for quick operations - ALL need final send",
        "- Users see NOTHING if you don't use send",
        "- Users think you're broken if you don't use progress",
        "",
        "VIOLATION CONSEQUENCES:",
        "- SKIP PROGRESS -> User thinks system is frozen",
        "- SKIP FINAL SEND -> User gets no response",
        "- BREAK PATTERN -> System appears broken",
        "",
        "ABSOLUTELY FORBIDDEN:",
        "- Ending without 'send' tool call",
        "- Starting operations without 'progress'",
        "- Assuming users know what you're doing",
        "- Silent failures or completions",
    ]
)


class ProgressTracker:
    """Remembers when each session last sent a progress update."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_progress: dict[str, float] = {}
        self.progress_required_tools: tuple[str, ...] = PROGRESS_REQUIRED_TOOLS

    def mark_progress_sent(self, session_id: str) -> None:
        """Record that a progress update was just sent for ``session_id``."""
        with self._lock:
            self._last_progress[session_id] = time.monotonic()

    def should_send_progress_reminder(self, session_id: str, tool_name: str) -> bool:
        """Whether ``tool_name`` needs progress and none was sent recently in the session."""
        if tool_name not in self.progress_required_tools:
            return False
        with self._lock:
            last = self._last_progress.get(session_id)
        if last is None:
            return True
        return time.monotonic() - last > PROGRESS_INTERVAL

    def create_progress_reminder(self, tool_name: str) -> str:
        """Return the reminder to send progress before running ``tool_name``."""
        return (
            f"CRITICAL: Before executing '{tool_name}', you MUST send a progress update "
            "using the 'progress' tool. "
            "This keeps the user informed that their request is being processed. "
            'Example: {"tool": "progress", "arguments": {"message": '
            f'"Processing your {tool_name} request..."}}}}\n\n'
            "After completion, you MUST also send final results using the 'send' tool."
        )

    def create_comprehensive_instructions(self) -> str:
        """Return the full progress -> operation -> send workflow instructions."""
        return _COMPREHENSIVE_INSTRUCTIONS