"""Issue priority P0 (critical) through P4 (trivial)."""

from enum import IntEnum


class Priority(IntEnum):
    """Severity level; lower value is more severe.

    JSON output from pb carries the label ("P0".."P4"); the event log
    stores the bare integer.
    """

    P0 = 0
    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4

    @property
    def label(self) -> str:
        """Canonical external label, e.g. "P2"."""
        return f"P{self.value}"


DEFAULT_PRIORITY = Priority.P2
