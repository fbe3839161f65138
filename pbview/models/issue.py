"""Issue, status and comment models (values decoded from pb output)."""

import hashlib
from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from pbview.models.priority import DEFAULT_PRIORITY, Priority

DEFAULT_ISSUE_TYPE = "task"


class IssueStatus(str, Enum):
    """Issue lifecycle status."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"

    @property
    def display_name(self) -> str:
        return {"open": "Open", "in_progress": "In Progress", "closed": "Closed"}[self.value]

    @property
    def sort_order(self) -> int:
        return list(IssueStatus).index(self)


class IssueComment(BaseModel):
    """Comment on an issue. Identity is derived from body and timestamp."""

    model_config = {"frozen": True}

    body: str
    timestamp: datetime

    @property
    def id(self) -> str:
        digest = hashlib.sha1(self.body.encode("utf-8")).hexdigest()[:12]
        return f"{digest}-{self.timestamp.timestamp()}"


class Issue(BaseModel):
    """A pebbles issue, from `pb list --json`, `pb show --json` or tree output.

    `issue_type` is free-form, not an enum. `parents`, `children`,
    `siblings` and `comments` are only populated by the detail decoder;
    None means the field was absent, [] means present but empty.
    """

    model_config = {"frozen": True}

    id: str
    title: str
    description: str = ""
    issue_type: str = DEFAULT_ISSUE_TYPE
    status: IssueStatus = IssueStatus.OPEN
    priority: Priority = DEFAULT_PRIORITY
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    parents: List[str] | None = None
    children: List[str] | None = None
    siblings: List[str] | None = None
    deps: List[str] = Field(default_factory=list)
    comments: List[IssueComment] | None = None
