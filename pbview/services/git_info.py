"""Git history, branches and worker worktrees that mention an issue id.

Every lookup is best effort: a missing git binary, a timeout or a non-zero
exit (e.g. not a repository) yields an empty result instead of an error.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from pbview.errors import PBError
from pbview.models import GitCommit, WorkerInfo
from pbview.normalize import parse_date
from pbview.services.process_runner import ProcessRunner

COMMIT_FORMAT = "%H|%h|%s|%an|%aI"
LAST_COMMIT_FORMAT = "%h|%s|%an|%aI"

LOG = logging.getLogger("pbview.services.git_info")


def _parse_git_date(value: str) -> datetime | None:
    try:
        return parse_date(value)
    except ValueError:
        return None


def parse_commits(output: str) -> List[GitCommit]:
    """Parse `git log --format=%H|%h|%s|%an|%aI` lines; short lines are skipped."""
    commits = []
    for line in output.splitlines():
        parts = line.split("|")
        if len(parts) < 5:
            continue
        # A "|" inside the subject shifts fields; the date is always last
        commits.append(
            GitCommit(
                sha=parts[0],
                short_sha=parts[1],
                message="|".join(parts[2:-2]),
                author=parts[-2],
                date=_parse_git_date(parts[-1]),
            )
        )
    return commits


def parse_branches(output: str) -> List[str]:
    """Branch names from `git branch --list`, without the "* " current marker."""
    branches = []
    for line in output.splitlines():
        name = line.strip()
        if name.startswith("* "):
            name = name[2:].strip()
        if name:
            branches.append(name)
    return branches


class GitInfoService:
    """Query git for commits and branches associated with an issue."""

    def __init__(self, runner: ProcessRunner | None = None, executable: str = "git") -> None:
        self._runner = runner or ProcessRunner()
        self._executable = executable

    async def _git(self, args: Sequence[str], path: str | Path) -> str | None:
        try:
            output = await self._runner.run(self._executable, arguments=list(args), working_directory=path)
        except PBError as e:
            LOG.debug("git %s failed: %s", args[0], e)
            return None
        if not output.ok:
            return None
        return output.stdout

    async def find_commits(self, path: str | Path, issue_id: str) -> List[GitCommit]:
        """Commits on any branch whose message mentions `issue_id`."""
        output = await self._git(["log", "--all", f"--grep={issue_id}", f"--format={COMMIT_FORMAT}"], path)
        return parse_commits(output) if output else []

    async def find_branches(self, path: str | Path, issue_id: str) -> List[str]:
        """Local and remote branches whose name contains `issue_id`."""
        output = await self._git(["branch", "--all", "--list", f"*{issue_id}*"], path)
        return parse_branches(output) if output else []

    async def has_remote(self, path: str | Path) -> bool:
        output = await self._git(["remote"], path)
        return bool(output and output.strip())

    async def discover_worker(self, path: str | Path, issue_id: str) -> WorkerInfo | None:
        """First branch for `issue_id`, whether a worktree has it, and its last commit."""
        branches = await self.find_branches(path, issue_id)
        if not branches:
            return None
        branch = branches[0]

        worktrees = await self._git(["worktree", "list"], path)
        is_worktree = bool(worktrees and issue_id in worktrees)

        info = WorkerInfo(branch_name=branch, is_worktree=is_worktree)
        last = await self._git(["log", "-1", f"--format={LAST_COMMIT_FORMAT}", branch], path)
        parts = (last or "").strip().split("|")
        if len(parts) < 4:
            return info
        return info.model_copy(
            update={
                "last_commit_sha": parts[0],
                "last_commit_message": "|".join(parts[1:-2]),
                "last_commit_author": parts[-2],
                "last_commit_date": _parse_git_date(parts[-1]),
            }
        )
