"""Decoders for pb commands that print plain text instead of JSON.

`pb dep tree` draws the tree with box-drawing characters:

    pv-epic1
    ├── pv-epic1.1 - Design phase [OPEN]
    │   └── pv-epic1.2 - Implementation [OPEN]
    └── pv-epic1.3 - Testing [OPEN]

Depth comes from the position of the branch glyph; each line is then parsed
as an issue line and the flat (depth, issue) list is folded into DepNodes.
"""

import logging
import re
from typing import List, Sequence, Tuple

from pbview.models import DEFAULT_ISSUE_TYPE, DEFAULT_PRIORITY, DepNode, Issue, IssueStatus
from pbview.normalize import parse_priority

LOG = logging.getLogger("pbview.parsers.text")

_CREATED_PREFIX = "created "

_STATUS_GLYPHS = {
    "○": IssueStatus.OPEN,
    "◑": IssueStatus.IN_PROGRESS,
    "◐": IssueStatus.IN_PROGRESS,
    "●": IssueStatus.CLOSED,
}
_TRAILING_STATUS = {
    "[OPEN]": IssueStatus.OPEN,
    "[IN_PROGRESS]": IssueStatus.IN_PROGRESS,
    "[CLOSED]": IssueStatus.CLOSED,
}
_PRIORITY_TOKEN_RE = re.compile(r"\[●?\s*P([0-9])\]")
_TYPE_TOKEN_RE = re.compile(r"\[(\w+)\]")
_DATE_TOKEN_RE = re.compile(r"\[\d{4}-\d{2}-\d{2}\]")

_BRANCH_GLYPHS = ("├", "└")
_INDENT_CHARS = ("│", " ")
_TREE_CHARS = "├└─│┬┤┌┐┘"
_INDENT_WIDTH = 4

# Bound on nesting; deeper subtrees are dropped
MAX_TREE_DEPTH = 64

TreeEntry = Tuple[int, Issue]


def parse_create_output(text: str) -> str:
    """Extract the new issue id from `pb create` output.

    Accepts "pv-abc123" or "Created pv-abc123" (prefix case-insensitive).
    """
    trimmed = text.strip()
    if trimmed.lower().startswith(_CREATED_PREFIX):
        return trimmed[len(_CREATED_PREFIX) :].strip()
    return trimmed


def parse_version(text: str, tool_name: str = "pebbles") -> str:
    """Extract the version from `pb version` output ("pebbles v0.8.0" -> "v0.8.0")."""
    trimmed = text.strip()
    prefix = f"{tool_name.lower()} "
    if trimmed.lower().startswith(prefix):
        return trimmed[len(prefix) :]
    return trimmed


def _remove_span(text: str, match: re.Match) -> str:
    return (text[: match.start()] + text[match.end() :]).strip()


def parse_issue_line(line: str) -> Issue | None:
    """Parse one issue line from list or tree output.

    Format: "○ pv-abc [● P2] [task] [2025-01-20] - Title [OPEN]", every part
    after the id optional. Leading glyph: ○ open, ◑/◐ in progress, ● closed.
    A trailing [OPEN]/[IN_PROGRESS]/[CLOSED] overrides the glyph. The date
    token is recognised and dropped.

    Returns:
        Issue, or None for a blank line.
    """
    remaining = line.strip()
    if not remaining:
        return None

    status = IssueStatus.OPEN
    glyph_status = _STATUS_GLYPHS.get(remaining[0])
    if glyph_status is not None:
        status = glyph_status
        remaining = remaining[1:].strip()

    parts = remaining.split(None, 1)
    if not parts:
        return None
    issue_id = parts[0]
    remaining = parts[1] if len(parts) > 1 else ""

    # Trailing status first, otherwise the type pattern would take "[OPEN]"
    for token, trailing_status in _TRAILING_STATUS.items():
        if remaining.endswith(token):
            status = trailing_status
            remaining = remaining[: -len(token)].strip()
            break

    priority = DEFAULT_PRIORITY
    m = _PRIORITY_TOKEN_RE.search(remaining)
    if m:
        priority = parse_priority(f"P{m.group(1)}") or DEFAULT_PRIORITY
        remaining = _remove_span(remaining, m)

    issue_type = DEFAULT_ISSUE_TYPE
    m = _TYPE_TOKEN_RE.search(remaining)
    if m:
        issue_type = m.group(1)
        remaining = _remove_span(remaining, m)

    m = _DATE_TOKEN_RE.search(remaining)
    if m:
        remaining = _remove_span(remaining, m)

    if remaining.startswith("- "):
        remaining = remaining[2:]
    elif remaining.startswith("-"):
        remaining = remaining[1:]

    return Issue(
        id=issue_id,
        title=remaining.strip(),
        issue_type=issue_type,
        status=status,
        priority=priority,
    )


def measure_depth(line: str) -> int:
    """Logical depth of a tree line.

    The root (no branch glyph) is 0. Otherwise 1 plus the number of
    4-character indentation groups ("│   " or "    ") before the glyph.
    """
    for i, ch in enumerate(line):
        if ch in _BRANCH_GLYPHS:
            return i // _INDENT_WIDTH + 1
        if ch not in _INDENT_CHARS:
            return 0
    return 0


def clean_tree_line(line: str) -> str:
    """Remove box-drawing characters and surrounding whitespace."""
    return line.translate({ord(ch): None for ch in _TREE_CHARS}).strip()


def _bare_issue(issue_id: str) -> Issue:
    return Issue(
        id=issue_id,
        title="",
        issue_type=DEFAULT_ISSUE_TYPE,
        status=IssueStatus.OPEN,
        priority=DEFAULT_PRIORITY,
    )


def tokenize_tree(text: str) -> List[TreeEntry]:
    """Turn tree output into a flat list of (depth, issue), skipping blank lines."""
    entries: List[TreeEntry] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        depth = measure_depth(line)
        cleaned = clean_tree_line(line)
        issue = parse_issue_line(cleaned)
        if issue is None:
            if not cleaned:
                continue
            issue = _bare_issue(cleaned)
        entries.append((depth, issue))
    return entries


def _skip_subtree(entries: Sequence[TreeEntry], index: int, depth: int) -> int:
    """Index of the first entry after `index` at depth <= `depth`."""
    index += 1
    while index < len(entries) and entries[index][0] > depth:
        index += 1
    return index


def build_tree(
    entries: Sequence[TreeEntry],
    index: int = 0,
    parent_depth: int = -1,
    ancestors: frozenset[str] = frozenset(),
) -> Tuple[DepNode | None, int]:
    """Build the node at `index` and its children by recursive descent.

    A node is accepted only if deeper than `parent_depth`. Its children are
    the following entries deeper than the node; the first entry at the
    node's depth or shallower ends it and is left for the caller.

    A node whose id is already among its ancestors (a cycle) is dropped with
    its subtree, as is anything nested deeper than MAX_TREE_DEPTH.

    Returns:
        (node or None, index of the first unconsumed entry).
    """
    if index >= len(entries):
        return None, index

    depth, issue = entries[index]
    if depth <= parent_depth:
        return None, index

    if issue.id in ancestors:
        LOG.warning("Dependency cycle at %s, dropping subtree", issue.id)
        return None, _skip_subtree(entries, index, depth)
    if len(ancestors) >= MAX_TREE_DEPTH:
        LOG.warning("Dependency tree deeper than %s at %s, dropping subtree", MAX_TREE_DEPTH, issue.id)
        return None, _skip_subtree(entries, index, depth)

    path = ancestors | {issue.id}
    children: List[DepNode] = []
    current = index + 1
    while current < len(entries):
        if entries[current][0] <= depth:
            break
        child, current = build_tree(entries, current, depth, path)
        if child is not None:
            children.append(child)

    return DepNode(issue=issue, dependencies=children), current


def parse_dep_tree(text: str) -> DepNode | None:
    """Parse `pb dep tree` output into its root node; None for empty output."""
    entries = tokenize_tree(text)
    if not entries:
        return None
    return build_tree(entries)[0]
