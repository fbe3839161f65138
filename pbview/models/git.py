"""Git history and worker branch information for an issue."""

from datetime import datetime

from pydantic import BaseModel


class GitCommit(BaseModel):
    """A git commit whose message references an issue."""

    model_config = {"frozen": True}

    sha: str
    short_sha: str
    message: str
    author: str
    date: datetime | None = None


class WorkerInfo(BaseModel):
    """Branch (and possibly worktree) where an issue is being worked on."""

    model_config = {"frozen": True}

    branch_name: str
    is_worktree: bool = False
    last_commit_sha: str | None = None
    last_commit_message: str | None = None
    last_commit_author: str | None = None
    last_commit_date: datetime | None = None
