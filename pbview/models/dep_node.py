"""Dependency tree node (`pb dep tree ISSUE-ID`)."""

from typing import Iterator, List, Tuple

from pydantic import BaseModel, Field

from pbview.models.issue import Issue


class DepNode(BaseModel):
    """One issue and the ordered nodes it depends on."""

    model_config = {"frozen": True}

    issue: Issue
    dependencies: List["DepNode"] = Field(default_factory=list)

    @property
    def id(self) -> str:
        return self.issue.id

    def walk(self) -> Iterator[Tuple[int, "DepNode"]]:
        """Yield (depth, node) pairs in display order, root first at depth 0."""
        stack = [(0, self)]
        while stack:
            depth, node = stack.pop()
            yield depth, node
            stack.extend((depth + 1, child) for child in reversed(node.dependencies))


DepNode.model_rebuild()
