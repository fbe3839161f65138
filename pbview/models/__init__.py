"""Domain models for pb output (Pydantic, immutable)."""

from pbview.models.dep_node import DepNode
from pbview.models.event import Event, EventType
from pbview.models.git import GitCommit, WorkerInfo
from pbview.models.issue import DEFAULT_ISSUE_TYPE, Issue, IssueComment, IssueStatus
from pbview.models.priority import DEFAULT_PRIORITY, Priority

__all__ = [
    "DEFAULT_ISSUE_TYPE",
    "DEFAULT_PRIORITY",
    "DepNode",
    "Event",
    "EventType",
    "GitCommit",
    "Issue",
    "IssueComment",
    "IssueStatus",
    "Priority",
    "WorkerInfo",
]
