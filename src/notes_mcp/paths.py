"""Utilities for working with note paths safely."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .errors import EmptyPathError, EscapeError, TraversalError, ValidationError

NOTE_SUFFIX = ".md"
DEFAULT_NOTES_ROOT = "~/Notes"


@dataclass(frozen=True)
class NotesRoot:
    """Container representing the configured notes directory."""

    root: Path


class NotesConfigurationError(ValidationError):
    """Raised when the notes root configuration is invalid."""


def expand_root(raw: str | os.PathLike[str]) -> str:
    """Expand ``~`` and environment variables in a notes root and normalise it."""

    return os.path.normpath(os.path.expandvars(os.path.expanduser(os.fspath(raw))))


def _root_text(notes_root: NotesRoot | str | os.PathLike[str]) -> str:
    """Return the root as a string, expanding only raw unconfigured strings.

    A :class:`NotesRoot` or :class:`~pathlib.Path` was already expanded by
    :func:`configure_notes_root` and is taken literally.
    """

    if isinstance(notes_root, NotesRoot):
        notes_root = notes_root.root
    if isinstance(notes_root, Path):
        return os.path.normpath(os.fspath(notes_root))
    return expand_root(notes_root)


def configure_notes_root(raw: str | os.PathLike[str] | None) -> NotesRoot:
    """Validate *raw* and make sure the notes directory exists."""

    if raw is None or not os.fspath(raw).strip():
        raise NotesConfigurationError("notes_root must be provided")

    expanded = expand_root(os.fspath(raw).strip())
    if not os.path.isabs(expanded):
        raise NotesConfigurationError(f"notes_root must be absolute: {os.fspath(raw)!r}")

    root = Path(expanded)
    if root.exists() and not root.is_dir():
        raise NotesConfigurationError(f"notes_root is not a directory: {root}")
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise NotesConfigurationError(f"Cannot create notes_root {root}: {exc}") from exc

    return NotesRoot(root=root)


def _has_traversal(raw: str) -> bool:
    if raw.startswith("/") or raw.startswith("~"):
        return True
    segments = raw.replace(os.sep, "/").split("/")
    return ".." in segments


def ensure_markdown_suffix(path: str) -> str:
    if path.endswith(NOTE_SUFFIX):
        return path
    return f"{path}{NOTE_SUFFIX}"


def resolve_note_path(
    raw_input: str | None, notes_root: NotesRoot | str | os.PathLike[str]
) -> Path:
    """Resolve a user supplied note name to an absolute path under *notes_root*.

    The raw input is checked for traversal before any expansion happens, and
    the user segment itself is never expanded. No filesystem access occurs.
    """

    if raw_input is None or not raw_input.strip():
        raise EmptyPathError("Note path cannot be empty")

    candidate = raw_input.strip()
    if _has_traversal(candidate):
        raise TraversalError(f"Note path may not leave the notes directory: {raw_input!r}")

    relative = candidate.strip("/")
    root = _root_text(notes_root)
    joined = os.path.normpath(os.path.join(root, relative))

    prefix = root if root.endswith(os.sep) else f"{root}{os.sep}"
    if not joined.startswith(prefix):
        raise EscapeError(f"Resolved path {joined} is outside {root}")

    return Path(ensure_markdown_suffix(joined))


def relative_to_root(
    path: str | os.PathLike[str], notes_root: NotesRoot | str | os.PathLike[str]
) -> str:
    """Strip the notes root and one separator from *path* when it is a prefix."""

    text = os.fspath(path)
    root = _root_text(notes_root)
    prefix = root if root.endswith(os.sep) else f"{root}{os.sep}"
    if text.startswith(prefix):
        return text[len(prefix) :]
    return text
