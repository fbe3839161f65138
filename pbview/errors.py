"""Errors raised while running pb and interpreting its output."""


class PBError(Exception):
    """Base class for all pbview errors."""

    pass


class ExecutableNotFound(PBError):
    """Raised when the executable cannot be resolved or spawned."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"pb binary not found at '{path}'.")


class CommandTimeout(PBError):
    """Raised when the child process outlives its deadline (it is killed)."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout}s.")


class CommandFailed(PBError):
    """Raised by the command layer when pb exits non-zero."""

    def __init__(self, exit_code: int, stderr: str) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Command failed (exit {exit_code}): {stderr.strip()}")


class ParseError(PBError):
    """Raised when pb output cannot be decoded."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse output: {detail}")


class IssueNotFound(PBError):
    """Raised when pb reports that an issue id does not exist."""

    def __init__(self, issue_id: str) -> None:
        self.issue_id = issue_id
        super().__init__(f"Issue '{issue_id}' not found.")
