"""Tests for pbview.models (immutability, defaults, derived ids)."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pbview.models import (
    DepNode,
    Event,
    EventType,
    Issue,
    IssueComment,
    IssueStatus,
    Priority,
)


def _issue(issue_id: str = "pv-1") -> Issue:
    return Issue(id=issue_id, title="Title")


class TestIssue:
    """Issue defaults and immutability."""

    def test_defaults(self) -> None:
        """Only id and title are needed; the rest has list defaults."""
        issue = _issue()
        assert issue.description == ""
        assert issue.issue_type == "task"
        assert issue.status == IssueStatus.OPEN
        assert issue.priority == Priority.P2
        assert issue.deps == []
        assert issue.parents is None
        assert issue.comments is None
        assert issue.closed_at is None

    def test_frozen(self) -> None:
        """Assigning a field raises."""
        issue = _issue()
        with pytest.raises(ValidationError):
            issue.title = "Other"  # type: ignore[misc]

    def test_status_helpers(self) -> None:
        """Display names and sort order follow the lifecycle."""
        assert IssueStatus.IN_PROGRESS.display_name == "In Progress"
        assert [s.sort_order for s in IssueStatus] == [0, 1, 2]


class TestIssueComment:
    """IssueComment derived id."""

    def test_id_is_stable_and_content_derived(self) -> None:
        """Same body and timestamp give the same id; different body differs."""
        ts = datetime(2025, 1, 1, tzinfo=UTC)
        a = IssueComment(body="hello", timestamp=ts)
        b = IssueComment(body="hello", timestamp=ts)
        c = IssueComment(body="bye", timestamp=ts)
        assert a.id == b.id
        assert a.id != c.id


class TestEvent:
    """Event derived id and event type lookup."""

    def test_id_and_known_type(self) -> None:
        """id joins issue, timestamp and type; known types resolve."""
        ts = datetime(2025, 1, 1, tzinfo=UTC)
        event = Event(timestamp=ts, type="dep_add", issue_id="pv-1")
        assert event.id == f"pv-1-{ts.timestamp()}-dep_add"
        assert event.event_type is EventType.DEP_ADD
        assert event.payload == {}

    def test_unknown_type(self) -> None:
        """Unknown type strings still decode, event_type is None."""
        event = Event(timestamp=datetime(2025, 1, 1, tzinfo=UTC), type="label_add", issue_id="pv-1")
        assert event.event_type is None


class TestDepNode:
    """DepNode id and traversal."""

    def test_walk_in_display_order(self) -> None:
        """walk yields root first, then children depth-first in order."""
        tree = DepNode(
            issue=_issue("root"),
            dependencies=[
                DepNode(issue=_issue("a"), dependencies=[DepNode(issue=_issue("a1"))]),
                DepNode(issue=_issue("b")),
            ],
        )
        assert tree.id == "root"
        assert [(d, n.id) for d, n in tree.walk()] == [(0, "root"), (1, "a"), (2, "a1"), (1, "b")]
