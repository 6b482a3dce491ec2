"""FastMCP server exposing the note, search and sync commands."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, cast

import yaml
from dotenv import load_dotenv
from fastmcp import FastMCP
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .errors import FilesystemError, NotesError
from .paths import (
    DEFAULT_NOTES_ROOT,
    NotesConfigurationError,
    NotesRoot,
    configure_notes_root,
    relative_to_root,
    resolve_note_path,
)
from .process import Runner, run_command
from .search import search as search_notes
from .security import HEALTH_PATH, build_security_middleware
from .sync import sync_notes

TToolFunc = TypeVar("TToolFunc", bound=Callable[..., Any])

NEW_NOTE_HEADER = "tags:\n"

logger = logging.getLogger(__name__)

load_dotenv()


@dataclass(slots=True)
class Settings:
    notes: NotesRoot
    host: str
    port: int
    shared_secret: str | None
    log_level: str


@dataclass(slots=True)
class NoteService:
    """Business logic behind the note commands."""

    notes: NotesRoot
    runner: Runner = field(default=run_command)

    @property
    def root(self) -> Path:
        return self.notes.root

    def reconfigure(self, raw_root: str) -> dict[str, Any]:
        try:
            self.notes = configure_notes_root(raw_root)
        except NotesConfigurationError as exc:
            logger.error("Rejected notes root %r: %s", raw_root, exc)
            return _failure(exc)
        logger.info("Notes root set to %s", self.root)
        return {
            "ok": True,
            "level": "info",
            "message": f"Notes root set to {self.root}",
            "notes_root": str(self.root),
        }

    def note(self, path: str | None) -> dict[str, Any]:
        """Create the note at *path* if needed and return its content."""

        try:
            target = resolve_note_path(path, self.root)
            created = _ensure_note(target)
            content = target.read_text(encoding="utf-8")
        except NotesError as exc:
            logger.error("Cannot open note %r: %s", path, exc)
            return {**_failure(exc), "path": path}
        except OSError as exc:
            logger.error("Cannot read note %r: %s", path, exc)
            return {**_failure(FilesystemError(str(exc))), "path": path}

        message = f"Created note {target}" if created else f"Opened note {target}"
        logger.info(message)
        return {
            "ok": True,
            "level": "info",
            "message": message,
            "path": str(target),
            "relative_path": relative_to_root(target, self.root),
            "created": created,
            "content": content,
        }

    def search(self, query: str | None = None) -> dict[str, Any]:
        try:
            found = search_notes(self.root, query, runner=self.runner)
        except NotesError as exc:
            logger.error("Search for %r failed: %s", query, exc)
            return {**_failure(exc), "output": getattr(exc, "output", "")}
        except OSError as exc:
            logger.error("Search for %r failed: %s", query, exc)
            return _failure(FilesystemError(str(exc)))

        if found.diagnostic:
            level, message = "warning", found.diagnostic
        else:
            level, message = "info", f"{found.title}: {len(found)} result(s)"
        return {
            "ok": True,
            "level": level,
            "message": message,
            "title": found.title,
            "diagnostic": found.diagnostic,
            "results": [result.to_dict() for result in found],
        }

    def sync(self) -> dict[str, Any]:
        try:
            report = sync_notes(self.root, runner=self.runner)
        except NotesError as exc:
            logger.error("Sync of %s failed: %s", self.root, exc)
            return _failure(exc)
        except OSError as exc:
            logger.error("Sync of %s failed: %s", self.root, exc)
            return _failure(FilesystemError(str(exc)))
        return report.to_dict()


def _failure(exc: Exception) -> dict[str, Any]:
    return {"ok": False, "level": "error", "message": str(exc), "error": str(exc)}


def _ensure_note(target: Path) -> bool:
    """Create *target* with the new-note header; existing files are left alone."""

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("x", encoding="utf-8") as handle:
            handle.write(NEW_NOTE_HEADER)
    except FileExistsError:
        return False
    except OSError as exc:
        raise FilesystemError(f"Cannot create note {target}: {exc}") from exc
    return True


def _load_config_file(path: str | None) -> Mapping[str, Any]:
    if not path:
        return {}
    try:
        with open(os.path.expanduser(path), encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise NotesConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise NotesConfigurationError(f"Config file {path} must contain a mapping")
    return loaded


def load_settings(notes_root: str | None = None) -> Settings:
    """Load configuration from an optional YAML file and environment variables.

    An explicit *notes_root* wins over both, and only the winning root is
    validated and created.
    """

    file_config = _load_config_file(os.environ.get("NOTES_MCP_CONFIG"))

    def option(env: str, key: str, default: Any) -> Any:
        value = os.environ.get(env)
        if value is not None:
            return value
        return file_config.get(key, default)

    log_level = str(option("LOG_LEVEL", "log_level", "info")).upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    raw_root = notes_root or option("NOTES_ROOT", "notes_root", DEFAULT_NOTES_ROOT)
    notes = configure_notes_root(raw_root)
    host = option("HOST", "host", "0.0.0.0")  # noqa: S104 (intentional bind)
    try:
        port = int(option("PORT", "port", 8000))
    except (TypeError, ValueError) as exc:
        raise NotesConfigurationError(f"port must be an integer: {exc}") from exc
    shared_secret = option("MCP_SHARED_SECRET", "shared_secret", None)

    return Settings(
        notes=notes,
        host=str(host),
        port=port,
        shared_secret=shared_secret or None,
        log_level=log_level,
    )


def create_server(settings: Settings | None = None) -> tuple[FastMCP, list[Middleware]]:
    """Create a configured :class:`FastMCP` instance and its security middleware."""

    settings = settings or load_settings()
    server = FastMCP(
        "Notes",
        instructions="Create, search and git-sync plain markdown notes",
    )

    security_middleware = build_security_middleware(settings.shared_secret)

    service = NoteService(settings.notes)

    def tool(*args: Any, **kwargs: Any) -> Callable[[TToolFunc], TToolFunc]:
        decorator = server.tool(*args, **kwargs)
        return cast(Callable[[TToolFunc], TToolFunc], decorator)

    @tool()
    async def note(path: str) -> dict[str, Any]:
        """Create a note (if missing) under the notes root and return its content."""
        return service.note(path)

    @tool()
    async def note_search(query: str | None = None) -> dict[str, Any]:
        """Search notes; without a query, list the most recently modified notes."""
        return service.search(query)

    @tool()
    async def note_sync() -> dict[str, Any]:
        """Pull, commit and push the notes git repository."""
        return service.sync()

    @server.custom_route(HEALTH_PATH, methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "notes_root": str(service.root)})

    return cast(FastMCP, server), security_middleware


def main() -> None:
    """Run the FastMCP server."""

    settings = load_settings()
    server, security_middleware = create_server(settings)
    server.run(
        transport="http",
        host=settings.host,
        port=settings.port,
        middleware=security_middleware,
    )


if __name__ == "__main__":
    main()
