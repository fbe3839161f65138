"""Single entry of the pebbles event log (`pb log --json`)."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Event types known to pb. `Event.type` stays a plain string so that
    unknown types still decode."""

    CREATE = "create"
    TITLE_UPDATED = "title_updated"
    STATUS_UPDATE = "status_update"
    UPDATE = "update"
    CLOSE = "close"
    COMMENT = "comment"
    RENAME = "rename"
    DEP_ADD = "dep_add"
    DEP_RM = "dep_rm"


class Event(BaseModel):
    """One append-only log record."""

    model_config = {"frozen": True}

    line: int | None = None
    timestamp: datetime
    type: str
    label: str | None = None
    issue_id: str
    issue_title: str | None = None
    actor: str | None = None
    actor_date: str | None = None
    details: str | None = None
    payload: Dict[str, str] = Field(default_factory=dict)

    @property
    def id(self) -> str:
        return f"{self.issue_id}-{self.timestamp.timestamp()}-{self.type}"

    @property
    def event_type(self) -> EventType | None:
        """Known event type, or None for types this client does not know."""
        try:
            return EventType(self.type)
        except ValueError:
            return None
