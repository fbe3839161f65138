"""Decoders for pb output: JSON (list, show, log) and plain text (create, version, dep tree)."""

from pbview.parsers.json_parser import (
    parse_event_log,
    parse_issue_detail,
    parse_issue_list,
    parse_ready_list,
)
from pbview.parsers.text_parser import (
    parse_create_output,
    parse_dep_tree,
    parse_issue_line,
    parse_version,
)

__all__ = [
    "parse_create_output",
    "parse_dep_tree",
    "parse_event_log",
    "parse_issue_detail",
    "parse_issue_line",
    "parse_issue_list",
    "parse_ready_list",
    "parse_version",
]
