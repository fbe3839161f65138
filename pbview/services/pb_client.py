"""High-level async API over the pb CLI.

Each method builds an argument list, runs it through ProcessRunner in the
project directory, turns a non-zero exit into CommandFailed (or
IssueNotFound for `pb show`) and routes stdout to the matching decoder.
"""

import logging
import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Sequence

from pbview.config import PBConfig
from pbview.errors import CommandFailed, IssueNotFound, ParseError
from pbview.models import DepNode, Event, Issue, IssueStatus, Priority
from pbview.normalize import format_date, priority_label
from pbview.parsers import (
    parse_create_output,
    parse_dep_tree,
    parse_event_log,
    parse_issue_detail,
    parse_issue_list,
    parse_ready_list,
    parse_version,
)
from pbview.services.process_runner import ProcessOutput, ProcessRunner


class RenamePrefixScope(str, Enum):
    """Which issues `pb rename-prefix` touches."""

    OPEN = "open"
    FULL = "full"


def make_runner(config: PBConfig) -> ProcessRunner:
    """Build a ProcessRunner from pb settings."""
    return ProcessRunner(
        timeout=config.timeout,
        extra_paths=config.extra_paths,
        extra_env=config.extra_env,
    )


class PBClient:
    """Run pb commands in a project directory and decode their output."""

    def __init__(
        self,
        config: PBConfig | None = None,
        runner: ProcessRunner | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.config = config or PBConfig()
        self._runner = runner or make_runner(self.config)
        self._log = log or logging.getLogger("pbview.services.pb_client")

    async def _run(self, project: str | Path, args: Sequence[str]) -> ProcessOutput:
        return await self._runner.run(
            self.config.executable,
            arguments=list(args),
            working_directory=project,
        )

    def _check(self, output: ProcessOutput, args: Sequence[str]) -> ProcessOutput:
        if not output.ok:
            self._log.warning("pb %s failed (exit %s): %s", args[0], output.exit_code, output.stderr.strip())
            raise CommandFailed(output.exit_code, output.stderr)
        return output

    async def _execute(self, project: str | Path, args: Sequence[str]) -> str:
        """Run and require exit 0; return stdout."""
        output = await self._run(project, args)
        return self._check(output, args).stdout

    # Project setup

    async def init_project(self, path: str | Path, prefix: str | None = None) -> None:
        args = ["init"]
        if prefix:
            args += ["--prefix", prefix]
        await self._execute(path, args)

    async def import_beads(self, path: str | Path, source: str | Path, backup: bool = False) -> None:
        """Import issues from a beads database at `source`."""
        args = ["import", "beads", "--from", str(source)]
        if backup:
            args.append("--backup")
        await self._execute(path, args)

    # Issue CRUD

    async def create_issue(
        self,
        path: str | Path,
        title: str,
        issue_type: str | None = None,
        priority: Priority | None = None,
        description: str | None = None,
    ) -> str:
        """Create an issue; returns the new issue id."""
        args = ["create", "--title", title]
        if issue_type:
            args += ["--type", issue_type]
        if priority is not None:
            args += ["--priority", priority_label(priority)]
        if description is not None:
            args += ["--description", description]
        stdout = await self._execute(path, args)
        return parse_create_output(stdout)

    async def list_issues(
        self,
        path: str | Path,
        statuses: Iterable[IssueStatus] | None = None,
        issue_type: str | None = None,
        priority: Priority | None = None,
        stale: bool = False,
        stale_days: int | None = None,
        include_all: bool = False,
    ) -> List[Issue]:
        """List issues, optionally filtered (`pb list --json`)."""
        args = ["list", "--json"]
        if statuses is not None:
            ordered = sorted(set(statuses), key=lambda s: s.sort_order)
            args += ["--status", ",".join(s.value for s in ordered)]
        if issue_type:
            args += ["--type", issue_type]
        if priority is not None:
            args += ["--priority", priority_label(priority)]
        if stale:
            args.append("--stale")
        if stale_days is not None:
            args += ["--stale-days", str(stale_days)]
        if include_all:
            args.append("--all")
        return parse_issue_list(await self._execute(path, args))

    async def show_issue(self, path: str | Path, issue_id: str) -> Issue:
        """Full detail of one issue, including hierarchy and comments.

        Raises:
            IssueNotFound: pb reported the id as not found.
            CommandFailed: Any other non-zero exit.
        """
        args = ["show", "--json", issue_id]
        output = await self._run(path, args)
        if not output.ok and "not found" in output.stderr.lower():
            raise IssueNotFound(issue_id)
        return parse_issue_detail(self._check(output, args).stdout)

    async def update_issue(
        self,
        path: str | Path,
        issue_id: str,
        status: IssueStatus | None = None,
        title: str | None = None,
        issue_type: str | None = None,
        priority: Priority | None = None,
        description: str | None = None,
        parent: str | None = None,
    ) -> None:
        args = ["update", issue_id]
        if status is not None:
            args += ["--status", status.value]
        if title is not None:
            args += ["--title", title]
        if issue_type:
            args += ["--type", issue_type]
        if priority is not None:
            args += ["--priority", priority_label(priority)]
        if description is not None:
            args += ["--description", description]
        if parent is not None:
            args += ["--parent", parent]
        await self._execute(path, args)

    async def close_issue(self, path: str | Path, issue_id: str) -> None:
        await self._execute(path, ["close", issue_id])

    async def reopen_issue(self, path: str | Path, issue_id: str) -> None:
        await self._execute(path, ["reopen", issue_id])

    async def add_comment(self, path: str | Path, issue_id: str, body: str) -> None:
        await self._execute(path, ["comment", issue_id, "--body", body])

    # Dependencies

    async def add_dependency(
        self,
        path: str | Path,
        issue_a: str,
        issue_b: str,
        dep_type: str | None = None,
    ) -> None:
        """Make `issue_a` depend on `issue_b`."""
        args = ["dep", "add", issue_a, issue_b]
        if dep_type:
            args += ["--type", dep_type]
        await self._execute(path, args)

    async def remove_dependency(
        self,
        path: str | Path,
        issue_a: str,
        issue_b: str,
        dep_type: str | None = None,
    ) -> None:
        args = ["dep", "rm", issue_a, issue_b]
        if dep_type:
            args += ["--type", dep_type]
        await self._execute(path, args)

    async def dependency_tree(self, path: str | Path, issue_id: str) -> DepNode:
        """Dependency tree rooted at `issue_id` (`pb dep tree`)."""
        node = parse_dep_tree(await self._execute(path, ["dep", "tree", issue_id]))
        if node is None:
            raise ParseError("Failed to parse dependency tree")
        return node

    # Queries

    async def ready_issues(self, path: str | Path) -> List[Issue]:
        """Issues with no open blocking dependency."""
        return parse_ready_list(await self._execute(path, ["ready", "--json"]))

    async def event_log(
        self,
        path: str | Path,
        limit: int | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        no_git: bool = True,
    ) -> List[Event]:
        """Event log entries (`pb log --json`), decoded all-or-nothing."""
        args = ["log", "--json", "--no-pager"]
        if no_git:
            args.append("--no-git")
        if limit is not None:
            args += ["--limit", str(limit)]
        if since is not None:
            args += ["--since", format_date(since)]
        if until is not None:
            args += ["--until", format_date(until)]
        return parse_event_log(await self._execute(path, args))

    # ID management

    async def rename_issue(self, path: str | Path, old_id: str, new_id: str) -> None:
        await self._execute(path, ["rename", old_id, new_id])

    async def rename_prefix(self, path: str | Path, prefix: str, scope: RenamePrefixScope) -> None:
        """Rename open (or all) issues to a new id prefix."""
        await self._execute(path, ["rename-prefix", f"--{scope.value}", prefix])

    # Meta

    async def version(self) -> str:
        """pb version string, e.g. "v0.8.0"."""
        stdout = await self._execute(os.getcwd(), ["version"])
        return parse_version(stdout, self.config.tool_name)
