from pathlib import Path

import pytest

from notes_mcp.errors import EmptyPathError, EscapeError, TraversalError, ValidationError
from notes_mcp.paths import (
    NotesConfigurationError,
    configure_notes_root,
    relative_to_root,
    resolve_note_path,
)


def test_resolve_note_path_nested():
    result = resolve_note_path("personal/house/renovation", "/home/u/Notes")
    assert result == Path("/home/u/Notes/personal/house/renovation.md")


def test_resolve_note_path_keeps_existing_suffix():
    result = resolve_note_path("ideas.md", "/home/u/Notes")
    assert str(result) == "/home/u/Notes/ideas.md"


def test_resolve_note_path_strips_trailing_slash_and_collapses_separators():
    result = resolve_note_path("work//meetings/", "/home/u/Notes/")
    assert str(result) == "/home/u/Notes/work/meetings.md"


@pytest.mark.parametrize(
    "raw",
    ["../../etc/passwd", "a/../../b", "..", "/etc/passwd", "~/secrets", "~root/x", "a/.."],
)
def test_resolve_note_path_rejects_traversal(raw, tmp_path):
    root = tmp_path / "notes"
    with pytest.raises(TraversalError):
        resolve_note_path(raw, root)
    assert not root.exists()


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_resolve_note_path_rejects_empty(raw):
    with pytest.raises(EmptyPathError):
        resolve_note_path(raw, "/home/u/Notes")


def test_resolve_note_path_rejects_root_itself():
    with pytest.raises(EscapeError):
        resolve_note_path(".", "/home/u/Notes")


def test_resolution_errors_are_validation_errors():
    with pytest.raises(ValidationError):
        resolve_note_path("../x", "/home/u/Notes")
    with pytest.raises(ValueError):
        resolve_note_path("", "/home/u/Notes")


def test_user_segment_is_not_expanded(monkeypatch):
    monkeypatch.setenv("SNEAKY", "/etc")
    result = resolve_note_path("$SNEAKY/passwd", "/home/u/Notes")
    assert str(result) == "/home/u/Notes/$SNEAKY/passwd.md"


def test_notes_root_is_expanded(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    result = resolve_note_path("todo", "~/Notes")
    assert result == tmp_path / "Notes" / "todo.md"
    assert str(result).startswith(str(tmp_path / "Notes"))


def test_configure_notes_root_creates_directory(tmp_path):
    target = tmp_path / "deep" / "notes"
    configured = configure_notes_root(str(target))
    assert configured.root == target
    assert target.is_dir()


def test_configure_notes_root_expands_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("NOTES_BASE", str(tmp_path))
    configured = configure_notes_root("$NOTES_BASE/notes")
    assert configured.root == tmp_path / "notes"


def test_configure_notes_root_requires_absolute():
    with pytest.raises(NotesConfigurationError):
        configure_notes_root("relative/path")


def test_configure_notes_root_rejects_file(tmp_path):
    existing = tmp_path / "file.txt"
    existing.write_text("x", encoding="utf-8")
    with pytest.raises(NotesConfigurationError):
        configure_notes_root(str(existing))


def test_configure_notes_root_requires_value():
    with pytest.raises(NotesConfigurationError):
        configure_notes_root("")


def test_relative_to_root():
    assert relative_to_root("/home/u/Notes/a/b.md", "/home/u/Notes") == "a/b.md"
    assert relative_to_root("/elsewhere/c.md", "/home/u/Notes") == "/elsewhere/c.md"


def test_configured_root_is_not_expanded_again(monkeypatch, tmp_path):
    monkeypatch.delenv("NOTES_LATER_VAR", raising=False)
    configured = configure_notes_root(str(tmp_path / "$NOTES_LATER_VAR"))
    monkeypatch.setenv("NOTES_LATER_VAR", "/etc")

    result = resolve_note_path("x", configured.root)

    assert result == tmp_path / "$NOTES_LATER_VAR" / "x.md"
    assert resolve_note_path("x", configured) == result
    assert relative_to_root(result, configured.root) == "x.md"
