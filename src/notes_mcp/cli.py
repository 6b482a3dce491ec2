"""Terminal front end for the note commands using Typer and Rich."""

from typing import Any, Optional

import click
import typer
from rich.console import Console
from rich.text import Text

from .errors import NotesError
from .search import SearchResult, SearchResults
from .server import NoteService, load_settings
from .server import main as serve_main
from .viewer import Viewer, detect_viewer, pick, render_flat

app = typer.Typer(
    name="notes",
    help="Create, search and sync plain markdown notes.",
    no_args_is_help=True,
)

console = Console()

LEVEL_STYLES = {"info": "green", "warning": "yellow", "error": "red"}


def report(result: dict[str, Any]) -> None:
    """Print the result message in its severity colour; exit 1 on errors."""

    level = result.get("level", "info")
    style = LEVEL_STYLES.get(level, "white")
    console.print(Text(str(result.get("message", "")), style=style))
    output = result.get("output")
    if output and level != "info":
        console.print(Text(output, style="dim"))
    if level == "error":
        raise typer.Exit(code=1)


def _service(ctx: typer.Context) -> NoteService:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    root: Optional[str] = typer.Option(
        None, "--root", help="Notes directory (overrides NOTES_ROOT for this run)."
    ),
) -> None:
    if ctx.resilient_parsing or ctx.invoked_subcommand == "serve":
        return
    try:
        settings = load_settings(notes_root=root)
    except NotesError as exc:
        report({"level": "error", "message": f"Invalid configuration: {exc}"})
        return
    ctx.obj = NoteService(settings.notes)


@app.command()
def note(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Note path relative to the notes directory."),
    no_edit: bool = typer.Option(False, "--no-edit", help="Only create the note."),
) -> None:
    """Create a note if needed and open it in $EDITOR."""

    result = _service(ctx).note(path)
    report(result)
    if not no_edit:
        click.edit(filename=result["path"])


@app.command()
def search(
    ctx: typer.Context,
    query: Optional[str] = typer.Argument(None, help="Text to search for."),
    flat: bool = typer.Option(False, "--flat", help="Always print a flat list."),
) -> None:
    """Search notes, or list recent notes when no query is given."""

    result = _service(ctx).search(query)
    if not result["ok"]:
        report(result)
        return
    found = SearchResults(
        title=result["title"],
        results=[SearchResult(**item) for item in result["results"]],
        diagnostic=result.get("diagnostic"),
    )

    if detect_viewer(force_flat=flat) is Viewer.RICH_PICKER:
        chosen = pick(found)
        if chosen is not None:
            click.edit(filename=chosen.path)
        return
    render_flat(found, console)


@app.command()
def sync(ctx: typer.Context) -> None:
    """Pull, commit and push the notes git repository."""

    report(_service(ctx).sync())


@app.command()
def serve() -> None:
    """Run the MCP server over HTTP."""

    serve_main()


if __name__ == "__main__":
    app()
