"""Requests for the goose command-line agent and the result of running it."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

__all__ = [
    "RunTaskRequest",
    "SessionRequest",
    "SessionListRequest",
    "SessionRemoveRequest",
    "SessionExportRequest",
    "ConfigureRequest",
    "UpdateRequest",
    "InfoRequest",
    "McpListRequest",
    "McpInstallRequest",
    "ProjectRequest",
    "CommandResult",
]


@dataclass
class RunTaskRequest:
    """A task given as inline instructions or as a file of instructions."""

    instructions: str
    instruction_file: Optional[str] = None
    max_turns: Optional[int] = None
    debug: Optional[bool] = None


@dataclass
class SessionRequest:
    """Options for starting or resuming an interactive session."""

    name: Optional[str] = None
    id: Optional[str] = None
    resume: Optional[bool] = None
    with_extension: Optional[str] = None
    with_builtin: Optional[str] = None
    debug: Optional[bool] = None
    max_turns: Optional[int] = None


@dataclass
class SessionListRequest:
    """Options for listing sessions."""

    verbose: Optional[bool] = None
    format: Optional[str] = None
    ascending: Optional[bool] = None


@dataclass
class SessionRemoveRequest:
    """Selects sessions to remove by id, name or regex, in that order of preference."""

    id: Optional[str] = None
    name: Optional[str] = None
    regex: Optional[str] = None


@dataclass
class SessionExportRequest:
    """Selects a session to export by id, name or path, and where to write it."""

    id: Optional[str] = None
    name: Optional[str] = None
    path: Optional[str] = None
    output: Optional[str] = None


@dataclass
class ConfigureRequest:
    """Options for the configure command."""

    reconfigure: Optional[bool] = None


@dataclass
class UpdateRequest:
    """Options for the update command."""

    canary: Optional[bool] = None
    reconfigure: Optional[bool] = None


@dataclass
class InfoRequest:
    """Options for the info command."""

    verbose: Optional[bool] = None


@dataclass
class McpListRequest:
    """Options for listing MCP servers."""

    available: Optional[bool] = None
    installed: Optional[bool] = None


@dataclass
class McpInstallRequest:
    """An MCP server to install."""

    server: str
    force: Optional[bool] = None


@dataclass
class ProjectRequest:
    """Options for the project commands."""

    project: Optional[str] = None
    new: Optional[bool] = None


@dataclass
class CommandResult:
    """Outcome of running a command: its output, or an error and exit code."""

    success: bool
    output: str
    error: Optional[str]
    exit_code: int

    @classmethod
    def ok(cls, output: str) -> "CommandResult":
        """A successful result carrying ``output``."""
        return cls(success=True, output=output, error=None, exit_code=0)

    @classmethod
    def failure(cls, error: str, exit_code: int) -> "CommandResult":
        """A failed result carrying ``error`` and ``exit_code``."""
        return cls(success=False, output="", error=error, exit_code=exit_code)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the result."""
        return asdict(self)