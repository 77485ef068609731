"""Running the goose command-line agent, with retries, timeouts and session tracking."""

from __future__ import annotations

import contextlib
import logging
import os
import subprocess
import tempfile
import threading
import time
from pathlib import Path
from typing import Sequence, Union

from nparrot.goose_types import (
    CommandResult,
    ConfigureRequest,
    InfoRequest,
    McpInstallRequest,
    McpListRequest,
    ProjectRequest,
    RunTaskRequest,
    SessionExportRequest,
    SessionListRequest,
    SessionRemoveRequest,
    SessionRequest,
    UpdateRequest,
)

__all__ = ["COMPLETION_MARKER", "GooseCommands", "is_recoverable_error"]

log = logging.getLogger(__name__)

COMPLETION_MARKER = "🔚 EXECUTION COMPLETED - SESSION READY FOR TERMINATION"
DUPLICATE_WINDOW = 10.0
"""Seconds during which the same task may not be started again."""

_RECOVERABLE_PATTERNS = (
    "connection refused",
    "network error",
    "timeout",
    "temporarily unavailable",
    "rate limit",
    "service unavailable",
    "502 bad gateway",
    "503 service unavailable",
    "504 gateway timeout",
    "INVALID_ARGUMENT",
)
_RECOVERABLE_EXIT_CODES = frozenset({1, 2, 124, 137, 143})


def is_recoverable_error(error_msg: str, exit_code: int) -> bool:
    """Whether a failure looks transient and is worth retrying."""
    lowered = error_msg.lower()
    return (
        any(pattern in lowered for pattern in _RECOVERABLE_PATTERNS)
        or exit_code in _RECOVERABLE_EXIT_CODES
    )


class GooseCommands:
    """Builds goose command lines from requests and runs them."""

    def __init__(
        self,
        program: Union[str, Path] = "goose",
        timeout: float = 300.0,
        retries: int = 3,
        retry_delay: float = 5.0,
    ) -> None:
        if retries < 1:
            raise ValueError("retries must be at least 1")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if retry_delay < 0:
            raise ValueError("retry_delay must not be negative")
        self.program = os.fspath(program)
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self._lock = threading.Lock()
        self._executions: dict[str, float] = {}
        self._sessions: dict[str, bool] = {}

    def run_task(self, request: RunTaskRequest) -> CommandResult:
        """Run a task from inline instructions or an instruction file."""
        key = "runtask_" + request.instructions[:50].replace(" ", "_")
        with self._lock:
            started = self._executions.get(key)
            if started is not None and time.monotonic() - started < DUPLICATE_WINDOW:
                return CommandResult.failure(
                    "Same task is already being executed. Please wait.", -1
                )
            self._executions[key] = time.monotonic()
        try:
            if request.instruction_file is not None:
                args = ["run", "-i", request.instruction_file]
                if request.max_turns is not None:
                    args += ["--max-turns", str(request.max_turns)]
                if request.debug:
                    args.append("--debug")
                return self._execute(args)

            if not request.instructions.strip():
                return CommandResult.failure("Instructions cannot be empty", 1)
            try:
                path = self._write_temp(request.instructions)
            except OSError as exc:
                return CommandResult.failure(f"Failed to create temp file: {exc}", 1)
            try:
                return self._execute(["run", "-i", path])
            finally:
                with contextlib.suppress(OSError):
                    os.unlink(path)
        finally:
            with self._lock:
                self._executions.pop(key, None)

    def start_session(self, request: SessionRequest) -> CommandResult:
        """Start a session unless one with the same id is already active."""
        session_id = (
            request.id if request.id is not None else f"session_{int(time.time())}"
        )
        with self._lock:
            if self._sessions.get(session_id, False):
                return CommandResult.failure(
                    f"Session {session_id} is already active", -1
                )
            self._sessions[session_id] = True

        args = ["session"]
        if request.name is not None:
            args += ["--name", request.name]
        if request.resume:
            args.append("--resume")
            if request.id is not None:
                args += ["--id", request.id]
        if request.with_extension is not None:
            args += ["--with-extension", request.with_extension]
        if request.with_builtin is not None:
            args += ["--with-builtin", request.with_builtin]
        if request.debug:
            args.append("--debug")
        if request.max_turns is not None:
            args += ["--max-turns", str(request.max_turns)]

        try:
            return self._execute(args)
        finally:
            with self._lock:
                self._sessions[session_id] = False

    def list_sessions(self, request: SessionListRequest) -> CommandResult:
        """List sessions."""
        args = ["session", "list"]
        if request.verbose:
            args.append("--verbose")
        if request.format is not None:
            args += ["--format", request.format]
        if request.ascending:
            args.append("--ascending")
        return self._execute(args)

    def remove_session(self, request: SessionRemoveRequest) -> CommandResult:
        """Remove sessions by id, name or regex and mark them inactive."""
        if request.id is not None:
            session_key = request.id
        elif request.name is not None:
            session_key = request.name
        else:
            session_key = "unknown"

        args = ["session", "remove"]
        if request.id is not None:
            args += ["-i", request.id]
            with self._lock:
                self._sessions[request.id] = False
        elif request.name is not None:
            args += ["-n", request.name]
        elif request.regex is not None:
            args += ["-r", request.regex]
        else:
            return CommandResult.failure("Must specify id, name, or regex pattern", 1)

        result = self._execute(args)
        with self._lock:
            self._sessions[session_key] = False
        return result

    def export_session(self, request: SessionExportRequest) -> CommandResult:
        """Export a session selected by id, name or path."""
        args = ["session", "export"]
        if request.id is not None:
            args += ["-i", request.id]
        elif request.name is not None:
            args += ["-n", request.name]
        elif request.path is not None:
            args += ["-p", request.path]
        if request.output is not None:
            args += ["-o", request.output]
        return self._execute(args)

    def configure(self, request: ConfigureRequest) -> CommandResult:
        """Run the configure command."""
        args = ["configure"]
        if request.reconfigure:
            args.append("--reconfigure")
        return self._execute(args)

    def update(self, request: UpdateRequest) -> CommandResult:
        """Run the update command."""
        args = ["update"]
        if request.canary:
            args.append("--canary")
        if request.reconfigure:
            args.append("--reconfigure")
        return self._execute(args)

    def info(self, request: InfoRequest) -> CommandResult:
        """Run the info command."""
        args = ["info"]
        if request.verbose:
            args.append("--verbose")
        return self._execute(args)

    def version(self) -> CommandResult:
        """Report the program's version."""
        return self._execute(["--version"])

    def help(self) -> CommandResult:
        """Show the program's help text."""
        return self._execute(["--help"])

    def mcp_list(self, request: McpListRequest) -> CommandResult:
        """List MCP servers."""
        args = ["mcp", "list"]
        if request.available:
            args.append("--available")
        if request.installed:
            args.append("--installed")
        return self._execute(args)

    def mcp_install(self, request: McpInstallRequest) -> CommandResult:
        """Install an MCP server."""
        args = ["mcp", "install", request.server]
        if request.force:
            args.append("--force")
        return self._execute(args)

    def project_management(self, request: ProjectRequest) -> CommandResult:
        """Open a project, or start a new one."""
        args = ["projects" if request.new else "project"]
        if request.project is not None:
            args.append(request.project)
        return self._execute(args)

    def list_projects(self) -> CommandResult:
        """List projects."""
        return self._execute(["projects"])

    def kill_all_sessions(self) -> CommandResult:
        """Forget all sessions and running tasks and kill matching processes."""
        log.info("Killing all active sessions...")
        with self._lock:
            self._sessions.clear()
            self._executions.clear()
        try:
            completed = subprocess.run(
                ["pkill", "-f", Path(self.program).name],
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            log.warning("Failed to kill processes: %s", exc)
            return CommandResult.ok("Session state cleared (process kill failed)")
        if completed.returncode == 0:
            return CommandResult.ok("All Goose sessions terminated")
        return CommandResult.ok("Session cleanup completed (no active processes found)")

    def has_active_sessions(self) -> bool:
        """Whether any session is currently running."""
        with self._lock:
            return any(self._sessions.values())

    @staticmethod
    def _write_temp(content: str) -> str:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", delete=False, suffix=".txt"
        ) as handle:
            handle.write(content)
            return handle.name

    def _pause(self) -> None:
        log.info("Retrying in %s seconds...", self.retry_delay)
        time.sleep(self.retry_delay)

    def _execute(self, args: Sequence[str]) -> CommandResult:
        argv = [self.program, *args]
        log.debug("Executing command: %s", argv)
        for attempt in range(1, self.retries + 1):
            last = attempt == self.retries
            try:
                completed = subprocess.run(
                    argv, capture_output=True, timeout=self.timeout, check=False
                )
            except subprocess.TimeoutExpired:
                message = f"Command timed out after {self.timeout:g} seconds"
                code = -2
                log.error("Attempt %d timed out", attempt)
            except OSError as exc:
                message = f"Command execution failed: {exc}"
                code = -1
                log.error("Attempt %d failed: %s", attempt, message)
            else:
                stdout = completed.stdout.decode("utf-8", errors="replace")
                stderr = completed.stderr.decode("utf-8", errors="replace")
                if completed.returncode == 0:
                    log.debug("Command succeeded on attempt %d", attempt)
                    return CommandResult.ok(f"{stdout}\n{COMPLETION_MARKER}")
                code = completed.returncode if completed.returncode >= 0 else -1
                message = stderr or stdout
                if last or not is_recoverable_error(message, code):
                    return CommandResult.failure(message, code)
                log.warning(
                    "Recoverable error on attempt %d: %s (exit code: %d)",
                    attempt, message, code,
                )
                self._pause()
                continue
            if last:
                return CommandResult.failure(message, code)
            self._pause()
        return CommandResult.failure(f"Failed after {self.retries} attempts", -1)