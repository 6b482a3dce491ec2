"""One-shot git synchronisation of the notes directory.

The pipeline is strictly sequential and stops at the first failing step:

    pull -> status -> add -> commit -> push

Every git invocation receives the notes directory as an explicit working
directory, so the process-wide current directory is never touched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from .errors import ToolUnavailableError
from .process import CommandResult, Runner, run_command

logger = logging.getLogger(__name__)

GIT = "git"
COMMIT_PREFIX = "Auto-sync notes: "
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class SyncOutcome(str, Enum):
    TOOL_MISSING = "tool_missing"
    DIR_MISSING = "dir_missing"
    NOT_A_REPO = "not_a_repo"
    PULL_FAILED = "pull_failed"
    STATUS_FAILED = "status_failed"
    NOTHING_TO_SYNC = "nothing_to_sync"
    ADD_FAILED = "add_failed"
    COMMIT_FAILED = "commit_failed"
    PUSH_FAILED_LOCAL_COMMITTED = "push_failed_local_committed"
    SUCCESS = "success"

    @property
    def level(self) -> str:
        if self in (SyncOutcome.SUCCESS, SyncOutcome.NOTHING_TO_SYNC):
            return "info"
        if self is SyncOutcome.PUSH_FAILED_LOCAL_COMMITTED:
            return "warning"
        return "error"

    @property
    def ok(self) -> bool:
        return self.level != "error"


_MESSAGES: dict[SyncOutcome, str] = {
    SyncOutcome.TOOL_MISSING: "git is not installed or not on PATH",
    SyncOutcome.DIR_MISSING: "Notes directory does not exist: {root}",
    SyncOutcome.NOT_A_REPO: "Notes directory is not a git repository: {root}",
    SyncOutcome.PULL_FAILED: "git pull failed",
    SyncOutcome.STATUS_FAILED: "git status failed",
    SyncOutcome.NOTHING_TO_SYNC: "Nothing to sync",
    SyncOutcome.ADD_FAILED: "git add failed",
    SyncOutcome.COMMIT_FAILED: "git commit failed",
    SyncOutcome.PUSH_FAILED_LOCAL_COMMITTED: (
        "git push failed; changes are committed locally and will be pushed next sync"
    ),
    SyncOutcome.SUCCESS: "Notes synced",
}


@dataclass(frozen=True)
class SyncReport:
    outcome: SyncOutcome
    message: str
    output: str = ""
    commit_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome.ok

    @property
    def level(self) -> str:
        return self.outcome.level

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "outcome": self.outcome.value,
            "level": self.level,
            "message": self.message,
            "output": self.output,
            "commit_message": self.commit_message,
        }


def commit_message(now: datetime) -> str:
    return f"{COMMIT_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}"


def _report(
    outcome: SyncOutcome,
    root: Path,
    result: CommandResult | None = None,
    commit: str | None = None,
) -> SyncReport:
    report = SyncReport(
        outcome=outcome,
        message=_MESSAGES[outcome].format(root=root),
        output=result.output if result is not None else "",
        commit_message=commit,
    )
    log = getattr(logger, report.level)
    log("Sync finished: %s", report.message)
    if report.output and report.level != "info":
        log("git output:\n%s", report.output)
    return report


def sync_notes(
    root: Path,
    *,
    runner: Runner = run_command,
    clock: Callable[[], datetime] = datetime.now,
) -> SyncReport:
    """Pull, commit and push every change in the notes directory."""

    def git(*args: str) -> CommandResult:
        logger.info("Running git %s", " ".join(args))
        return runner([GIT, *args], cwd=root)

    try:
        runner([GIT, "--version"], cwd=None)
    except ToolUnavailableError:
        return _report(SyncOutcome.TOOL_MISSING, root)

    if not root.is_dir():
        return _report(SyncOutcome.DIR_MISSING, root)

    inside = git("rev-parse", "--is-inside-work-tree")
    if not inside.ok or inside.stdout.strip() != "true":
        return _report(SyncOutcome.NOT_A_REPO, root, inside)

    pulled = git("pull")
    if not pulled.ok:
        return _report(SyncOutcome.PULL_FAILED, root, pulled)

    status = git("status", "--porcelain")
    if not status.ok:
        return _report(SyncOutcome.STATUS_FAILED, root, status)
    if not status.stdout.strip():
        return _report(SyncOutcome.NOTHING_TO_SYNC, root)

    message = commit_message(clock())
    steps: tuple[tuple[tuple[str, ...], SyncOutcome], ...] = (
        (("add", "."), SyncOutcome.ADD_FAILED),
        (("commit", "-m", message), SyncOutcome.COMMIT_FAILED),
        (("push",), SyncOutcome.PUSH_FAILED_LOCAL_COMMITTED),
    )
    for args, failure in steps:
        result = git(*args)
        if not result.ok:
            committed = message if failure is SyncOutcome.PUSH_FAILED_LOCAL_COMMITTED else None
            return _report(failure, root, result, committed)

    return _report(SyncOutcome.SUCCESS, root, commit=message)
