"""Error taxonomy shared by the note, search and sync operations."""

from __future__ import annotations

from collections.abc import Sequence


class NotesError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(NotesError, ValueError):
    """Raised when user supplied input is rejected."""


class EmptyPathError(ValidationError):
    """Raised when a note path is empty."""


class TraversalError(ValidationError):
    """Raised when a note path tries to leave the notes root."""


class EscapeError(ValidationError):
    """Raised when a resolved path does not sit under the notes root."""


class ToolUnavailableError(NotesError):
    """Raised when a required external executable cannot be found."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Required tool is not installed or not on PATH: {tool}")
        self.tool = tool


class FilesystemError(NotesError):
    """Raised when creating or reading notes fails."""


class ProcessError(NotesError):
    """Raised when an external command exits with an unexpected status."""

    def __init__(
        self, args: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""
    ) -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Command {' '.join(self.command)!r} exited with status {returncode}"
        )

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)
