"""Search utilities for notes content."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .errors import ToolUnavailableError
from .paths import relative_to_root
from .process import CommandResult, Runner, run_command

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10
RECENT_TITLE = "Recent Notes"
RECENT_PLACEHOLDER = "Recent note"
SEARCH_TOOL = "rg"
NO_MATCH_STATUS = 1

# with --null each line is "<path>\0<line>:<text>"
RG_MATCH_PATTERN = re.compile(r"^(\d+):(.*)$")


@dataclass(frozen=True)
class SearchResult:
    path: str
    line_number: int
    line_text: str
    relative_path: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SearchResults:
    """A titled, ordered result set plus an optional diagnostic."""

    title: str
    results: list[SearchResult] = field(default_factory=list)
    diagnostic: str | None = None

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)


def recent_notes(root: Path, limit: int = RECENT_LIMIT) -> list[SearchResult]:
    """Return the *limit* most recently modified notes under *root*."""

    if limit <= 0:
        return []

    stamped: list[tuple[float, Path]] = []
    for path in sorted(root.rglob("*.md")):
        if not path.is_file():
            continue
        try:
            stamped.append((path.stat().st_mtime, path))
        except OSError:
            logger.debug("Skipping unreadable note %s", path)

    # list.sort is stable, also with reverse=True
    stamped.sort(key=lambda item: item[0], reverse=True)
    return [
        SearchResult(
            path=str(path),
            line_number=1,
            line_text=RECENT_PLACEHOLDER,
            relative_path=relative_to_root(path, root),
        )
        for _, path in stamped[:limit]
    ]


def parse_search_output(output: str, root: Path) -> list[SearchResult]:
    """Parse ``file<NUL>line:text`` lines, silently dropping anything malformed."""

    results: list[SearchResult] = []
    for line in output.split("\n"):
        if not line:
            continue
        filename, separator, rest = line.partition("\0")
        match = RG_MATCH_PATTERN.match(rest) if separator and filename else None
        if not match:
            logger.debug("Dropping unparseable search line: %r", line)
            continue
        number, text = match.groups()
        results.append(
            SearchResult(
                path=filename,
                line_number=int(number),
                line_text=text,
                relative_path=relative_to_root(filename, root),
            )
        )
    return results


def build_search_command(root: Path, query: str) -> list[str]:
    return [
        SEARCH_TOOL,
        "--line-number",
        "--with-filename",
        "--no-heading",
        "--smart-case",
        "--null",
        "--glob",
        "*.md",
        "--",
        query,
        os.fspath(root),
    ]


def search_content(root: Path, query: str, runner: Runner = run_command) -> list[SearchResult]:
    """Search note contents for *query* with ripgrep.

    Raises :class:`ToolUnavailableError` when ripgrep is missing and
    :class:`ProcessError` for any failure other than "no matches".
    """

    result: CommandResult = runner(build_search_command(root, query), cwd=root)
    if result.returncode == NO_MATCH_STATUS:
        return []
    return parse_search_output(result.check().stdout, root)


def search(
    root: Path,
    query: str | None = None,
    *,
    limit: int = RECENT_LIMIT,
    runner: Runner = run_command,
) -> SearchResults:
    """List recent notes when *query* is blank, otherwise search note contents."""

    if query is None or not query.strip():
        return SearchResults(title=RECENT_TITLE, results=recent_notes(root, limit))

    title = f"Search: {query}"
    try:
        results = search_content(root, query, runner=runner)
    except ToolUnavailableError as exc:
        logger.warning("%s; returning no results", exc)
        return SearchResults(title=title, diagnostic=str(exc))
    return SearchResults(title=title, results=results)

