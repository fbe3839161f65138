"""Decoders for pb JSON output.

Three shapes, each with its own schema and mapping:
- `pb list --json` / `pb ready --json`: JSON array of issue records
- `pb show --json`: one issue object with hierarchy and comments
- `pb log --json`: line-delimited JSON, one event object per line

Priority is always a label string ("P0".."P4"), unparseable labels become P2.
Empty timestamp strings mean "absent"; malformed timestamps are errors.
"""

import json
import logging
from typing import Any, Dict, List

from pydantic import BaseModel, ValidationError, field_validator

from pbview.errors import ParseError
from pbview.models import (
    DEFAULT_ISSUE_TYPE,
    DEFAULT_PRIORITY,
    Event,
    Issue,
    IssueComment,
    IssueStatus,
)
from pbview.normalize import parse_date, parse_optional_date, parse_priority

LOG = logging.getLogger("pbview.parsers.json")


class _RawIssue(BaseModel):
    """Issue record from list/ready output (snake_case keys)."""

    model_config = {"extra": "ignore"}

    id: str
    title: str
    description: str | None = None
    type: str | None = None
    status: str
    priority: str
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    deps: List[str] | None = None


class _RawComment(BaseModel):
    """Comment record inside `pb show --json`."""

    model_config = {"extra": "ignore"}

    body: str
    timestamp: str


class _RawIssueDetail(_RawIssue):
    """Issue record from `pb show --json`; hierarchy lists stay None when omitted."""

    parents: List[str] | None = None
    siblings: List[str] | None = None
    children: List[str] | None = None
    comments: List[_RawComment] | None = None


class _RawEvent(BaseModel):
    """One line of `pb log --json`."""

    model_config = {"extra": "ignore"}

    line: int | None = None
    timestamp: str
    type: str
    label: str | None = None
    issue_id: str
    issue_title: str | None = None
    actor: str | None = None
    actor_date: str | None = None
    details: str | None = None
    payload: Dict[str, str] | None = None

    @field_validator("payload", mode="before")
    @classmethod
    def _stringify_payload(cls, value: Any) -> Any:
        # Event payloads carry raw column values (e.g. priority as an int)
        if isinstance(value, dict):
            return {k: v if isinstance(v, str) else json.dumps(v) for k, v in value.items()}
        return value


def _status(value: str) -> IssueStatus:
    try:
        return IssueStatus(value)
    except ValueError:
        return IssueStatus.OPEN


def _common_fields(raw: _RawIssue) -> Dict[str, Any]:
    return {
        "id": raw.id,
        "title": raw.title,
        "description": raw.description or "",
        "issue_type": raw.type or DEFAULT_ISSUE_TYPE,
        "status": _status(raw.status),
        "priority": parse_priority(raw.priority) or DEFAULT_PRIORITY,
        "created_at": parse_optional_date(raw.created_at),
        "updated_at": parse_optional_date(raw.updated_at),
        "closed_at": parse_optional_date(raw.closed_at),
        "deps": list(raw.deps or []),
    }


def _issue_from_raw(raw: _RawIssue) -> Issue:
    return Issue(**_common_fields(raw))


def _comment_from_raw(raw: _RawComment) -> IssueComment:
    return IssueComment(body=raw.body, timestamp=parse_date(raw.timestamp))


def _issue_detail_from_raw(raw: _RawIssueDetail) -> Issue:
    comments = None
    if raw.comments is not None:
        comments = [_comment_from_raw(c) for c in raw.comments]
    return Issue(
        **_common_fields(raw),
        parents=raw.parents,
        children=raw.children,
        siblings=raw.siblings,
        comments=comments,
    )


def _event_from_raw(raw: _RawEvent) -> Event:
    return Event(
        line=raw.line,
        timestamp=parse_date(raw.timestamp),
        type=raw.type,
        label=raw.label,
        issue_id=raw.issue_id,
        issue_title=raw.issue_title,
        actor=raw.actor,
        actor_date=raw.actor_date,
        details=raw.details,
        payload=raw.payload or {},
    )


def _load_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        LOG.warning("Invalid JSON in %s: %s", what, e)
        raise ParseError(f"Invalid JSON in {what}: {e}") from e


def parse_issue_list(text: str) -> List[Issue]:
    """Decode `pb list --json` output into issues.

    Blank output and JSON null (an empty Go slice) decode to an empty list.

    Raises:
        ParseError: Invalid JSON, not an array, a missing required field
            (id, title, status, priority) or a malformed timestamp.
    """
    if not text.strip():
        return []
    data = _load_json(text, "issue list")
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON array of issues, got {type(data).__name__}")
    try:
        return [_issue_from_raw(_RawIssue.model_validate(item)) for item in data]
    except ValidationError as e:
        LOG.warning("Invalid issue record: %s", e)
        raise ParseError(f"Invalid issue record: {e}") from e
    except ValueError as e:
        raise ParseError(str(e)) from e


def parse_ready_list(text: str) -> List[Issue]:
    """Decode `pb ready --json` output (same shape as list)."""
    return parse_issue_list(text)


def parse_issue_detail(text: str) -> Issue:
    """Decode `pb show --json` output into one issue with hierarchy and comments.

    Raises:
        ParseError: Invalid JSON, not an object, missing required fields or
            malformed timestamps (including comment timestamps).
    """
    data = _load_json(text, "issue detail")
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object for issue detail, got {type(data).__name__}")
    try:
        return _issue_detail_from_raw(_RawIssueDetail.model_validate(data))
    except ValidationError as e:
        LOG.warning("Invalid issue detail: %s", e)
        raise ParseError(f"Invalid issue detail: {e}") from e
    except ValueError as e:
        raise ParseError(str(e)) from e


def parse_event_log(text: str) -> List[Event]:
    """Decode `pb log --json` output: one JSON object per line, NOT an array.

    Records are separated by "\\n" only (a trailing "\\r" is dropped); other
    Unicode line breaks such as U+0085 may appear inside JSON strings. Blank
    lines are skipped. Decoding is all-or-nothing: any malformed
    line fails the whole call.

    Raises:
        ParseError: With the 1-based line number of the first bad line.
    """
    events: List[Event] = []
    for number, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        data = _load_json(line, f"event log line {number}")
        if not isinstance(data, dict):
            raise ParseError(f"Event log line {number}: expected a JSON object")
        try:
            events.append(_event_from_raw(_RawEvent.model_validate(data)))
        except ValidationError as e:
            LOG.warning("Invalid event on line %s: %s", number, e)
            raise ParseError(f"Event log line {number}: {e}") from e
        except ValueError as e:
            raise ParseError(f"Event log line {number}: {e}") from e
    return events
