"""Display of search results in a terminal."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .search import SearchResult, SearchResults

logger = logging.getLogger(__name__)

PICKER_TOOL = "fzf"


class Viewer(Enum):
    RICH_PICKER = "picker"
    FLAT_LIST = "flat"


def detect_viewer(force_flat: bool = False, stream: TextIO | None = None) -> Viewer:
    """Choose how results are shown for this call."""

    if stream is None:
        stream = sys.stdout
    if force_flat or not stream.isatty():
        return Viewer.FLAT_LIST
    if shutil.which(PICKER_TOOL) is None:
        return Viewer.FLAT_LIST
    return Viewer.RICH_PICKER


def format_entry(result: SearchResult) -> str:
    return f"{result.relative_path}:{result.line_number}:{result.line_text}"


def render_flat(found: SearchResults, console: Console) -> None:
    if found.diagnostic:
        console.print(Text(found.diagnostic, style="yellow"))
    if not found.results:
        console.print(Text(f"{found.title}: no results", style="dim"))
        return

    table = Table(title=Text(found.title), show_header=True, header_style="bold cyan")
    table.add_column("Note", style="green")
    table.add_column("Line", justify="right", style="dim")
    table.add_column("Text")
    for result in found:
        table.add_row(
            Text(result.relative_path), str(result.line_number), Text(result.line_text)
        )
    console.print(table)


def pick(found: SearchResults) -> SearchResult | None:
    """Let the user choose one result with fzf; ``None`` when cancelled."""

    if not found.results:
        return None

    entries = [f"{index}\t{format_entry(result)}" for index, result in enumerate(found)]
    completed = subprocess.run(
        [
            PICKER_TOOL,
            "--delimiter",
            "\t",
            "--with-nth",
            "2..",
            "--prompt",
            f"{found.title}> ",
        ],
        input="\n".join(entries),
        stdout=subprocess.PIPE,
        text=True,
        check=False,
    )
    selection = completed.stdout.strip()
    if completed.returncode != 0 or not selection:
        logger.debug("Picker closed without a selection (status %s)", completed.returncode)
        return None
    index = int(selection.split("\t", 1)[0])
    return found.results[index]
