"""Thin synchronous wrapper around external commands."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .errors import FilesystemError, ProcessError, ToolUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured outcome of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)

    def check(self) -> CommandResult:
        """Return ``self`` or raise :class:`ProcessError` on a non-zero exit."""

        if not self.ok:
            raise ProcessError(self.args, self.returncode, self.stdout, self.stderr)
        return self


Runner = Callable[..., CommandResult]


def run_command(args: Sequence[str], cwd: Path | str | None = None) -> CommandResult:
    """Run *args* without a shell and capture its output.

    The working directory is passed to the child process only; the current
    process directory is never changed.
    """

    argv = tuple(str(arg) for arg in args)
    if not argv:
        raise ValueError("No command provided")

    logger.debug("Running %s (cwd=%s)", argv, cwd)
    try:
        completed = subprocess.run(
            argv,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        # a missing cwd raises the same error; only blame the tool when cwd is fine
        if cwd is not None and not Path(cwd).is_dir():
            raise FilesystemError(f"Cannot run {argv[0]} in {cwd}: {exc}") from exc
        raise ToolUnavailableError(argv[0]) from exc
    except OSError as exc:
        raise FilesystemError(f"Cannot run {argv[0]} in {cwd}: {exc}") from exc

    return CommandResult(
        args=argv,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
