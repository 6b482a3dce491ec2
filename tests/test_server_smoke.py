import os

from notes_mcp.errors import FilesystemError, ToolUnavailableError
from notes_mcp.paths import NotesRoot
from notes_mcp.process import CommandResult
from notes_mcp.server import NEW_NOTE_HEADER, NoteService


def _service(root, runner=None):
    if runner is None:
        return NoteService(NotesRoot(root))
    return NoteService(NotesRoot(root), runner=runner)


def test_note_creates_file_with_header(tmp_path):
    service = _service(tmp_path)

    result = service.note("personal/house/renovation")

    target = tmp_path / "personal" / "house" / "renovation.md"
    assert result["ok"] and result["created"]
    assert result["level"] == "info"
    assert result["path"] == str(target)
    assert result["relative_path"] == "personal/house/renovation.md"
    assert target.read_text(encoding="utf-8") == NEW_NOTE_HEADER
    assert result["content"] == "tags:\n"


def test_note_opens_existing_file_unmodified(tmp_path):
    existing = tmp_path / "journal.md"
    existing.write_text("Dear diary", encoding="utf-8")
    service = _service(tmp_path)

    result = service.note("journal.md")

    assert result["ok"] and not result["created"]
    assert result["content"] == "Dear diary"
    assert existing.read_text(encoding="utf-8") == "Dear diary"


def test_note_rejects_traversal_without_touching_disk(tmp_path):
    root = tmp_path / "notes"
    root.mkdir()
    service = _service(root)

    result = service.note("../../etc/passwd")

    assert not result["ok"]
    assert result["level"] == "error"
    assert "notes directory" in result["error"]
    assert list(tmp_path.iterdir()) == [root]


def test_note_rejects_empty_path(tmp_path):
    result = _service(tmp_path).note("")
    assert not result["ok"]
    assert "empty" in result["error"].lower()


def test_search_lists_recent_notes(tmp_path):
    service = _service(tmp_path)
    service.note("first")
    service.note("second")
    os.utime(tmp_path / "first.md", (1_000, 1_000))
    os.utime(tmp_path / "second.md", (2_000, 2_000))

    result = service.search()

    assert result["ok"]
    assert result["title"] == "Recent Notes"
    assert [r["relative_path"] for r in result["results"]] == ["second.md", "first.md"]


def test_search_reports_process_error(tmp_path):
    def runner(args, cwd=None):
        return CommandResult(tuple(args), 2, "", "bad pattern")

    result = _service(tmp_path, runner).search("[")

    assert not result["ok"]
    assert result["level"] == "error"
    assert "bad pattern" in result["output"]


def test_search_without_tool_is_a_warning(tmp_path):
    def runner(args, cwd=None):
        raise ToolUnavailableError(args[0])

    result = _service(tmp_path, runner).search("needle")

    assert result["ok"]
    assert result["level"] == "warning"
    assert result["results"] == []
    assert result["title"] == "Search: needle"


def test_sync_returns_report_dict(tmp_path):
    def runner(args, cwd=None):
        if args[1] == "rev-parse":
            return CommandResult(tuple(args), 128, "", "fatal: not a git repository")
        return CommandResult(tuple(args), 0)

    result = _service(tmp_path, runner).sync()

    assert result["outcome"] == "not_a_repo"
    assert result["level"] == "error"
    assert "not a git repository" in result["output"]


def test_reconfigure_switches_root(tmp_path):
    service = _service(tmp_path / "a")
    new_root = tmp_path / "b"

    result = service.reconfigure(str(new_root))

    assert result["ok"]
    assert service.root == new_root and new_root.is_dir()
    assert service.note("x")["path"] == str(new_root / "x.md")


def test_reconfigure_rejects_relative_root(tmp_path):
    service = _service(tmp_path)

    result = service.reconfigure("not/absolute")

    assert not result["ok"]
    assert service.root == tmp_path


def test_sync_permission_error_is_reported(tmp_path):
    def runner(args, cwd=None):
        if cwd is not None:
            raise PermissionError(13, "Permission denied", str(cwd))
        return CommandResult(tuple(args), 0)

    result = _service(tmp_path, runner).sync()

    assert not result["ok"]
    assert result["level"] == "error"
    assert "Permission denied" in result["error"]


def test_sync_filesystem_error_is_reported(tmp_path):
    def runner(args, cwd=None):
        if cwd is not None:
            raise FilesystemError(f"Cannot run git in {cwd}")
        return CommandResult(tuple(args), 0)

    result = _service(tmp_path, runner).sync()

    assert not result["ok"]
    assert str(tmp_path) in result["message"]


def test_search_permission_error_is_reported(tmp_path, monkeypatch):
    def unreadable(root, query, runner):
        raise PermissionError(13, "Permission denied", str(root))

    monkeypatch.setattr("notes_mcp.server.search_notes", unreadable)

    result = _service(tmp_path).search()

    assert not result["ok"]
    assert result["level"] == "error"
