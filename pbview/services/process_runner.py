"""Async runner for external CLI tools (pb, git).

Each call spawns exactly one process and races its exit against a deadline;
if the deadline wins the process and everything it started are killed and
CommandTimeout is raised. A non-zero exit code is returned as data, never
raised here. Children run in their own session so the group can be killed.

Apps launched from a desktop session often get a minimal PATH, so the child
PATH is extended with common user install locations before the executable
is resolved.
"""

import asyncio
import logging
import os
import shutil
import signal
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from pydantic import BaseModel

from pbview.errors import CommandTimeout, ExecutableNotFound

DEFAULT_TIMEOUT = 30.0
# How long to wait for a killed process group to release its pipes
KILL_GRACE = 2.0
FALLBACK_PATH = "/usr/bin:/bin:/usr/sbin:/sbin"

# Keep pb (and git) from paging, colouring or expecting a terminal
NON_INTERACTIVE_ENV = {
    "NO_COLOR": "1",
    "PB_PAGER": "cat",
    "PAGER": "cat",
    "GIT_PAGER": "cat",
    "TERM": "dumb",
}


def default_extra_paths() -> List[str]:
    """User-local and toolchain bin directories where pb is usually installed."""
    home = Path.home()
    return [
        str(home / ".local" / "bin"),
        "/usr/local/bin",
        "/opt/homebrew/bin",
        str(home / "go" / "bin"),
        str(home / ".cargo" / "bin"),
    ]


class ProcessOutput(BaseModel):
    """Captured result of one process invocation."""

    model_config = {"frozen": True}

    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """Run a CLI command with captured output, timeout and forced termination.

    Holds no per-call state; one instance may serve concurrent calls.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        extra_paths: Sequence[str] | None = None,
        extra_env: Mapping[str, str] | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.timeout = timeout
        self.extra_paths = tuple(extra_paths or ()) + tuple(default_extra_paths())
        self.extra_env = dict(extra_env or {})
        self._log = log or logging.getLogger("pbview.services.process_runner")

    def build_env(self, environment: Mapping[str, str] | None = None) -> Dict[str, str]:
        """Child environment: inherited env, widened PATH, non-interactive
        flags, configured extras, then per-call overrides."""
        env = dict(os.environ)
        current_path = env.get("PATH") or FALLBACK_PATH
        env["PATH"] = os.pathsep.join([*self.extra_paths, current_path])
        env.update(NON_INTERACTIVE_ENV)
        env.update(self.extra_env)
        if environment:
            env.update(environment)
        return env

    def resolve_executable(self, executable: str, env: Mapping[str, str]) -> str:
        """Absolute paths pass through; bare names are looked up on env PATH.

        Raises:
            ExecutableNotFound: If a bare name is not on PATH.
        """
        if os.path.isabs(executable):
            return executable
        found = shutil.which(executable, path=env.get("PATH"))
        if found is None:
            self._log.warning("Executable %s not found on PATH", executable)
            raise ExecutableNotFound(executable)
        return found

    async def run(
        self,
        executable: str,
        arguments: Sequence[str] = (),
        working_directory: str | Path = ".",
        environment: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ProcessOutput:
        """Run the command to completion or until the deadline.

        Args:
            executable: Absolute path or bare name (e.g. "pb").
            arguments: Command arguments.
            working_directory: Directory to run in (the project repo).
            environment: Extra variables, applied last.
            timeout: Per-call override of the runner timeout, in seconds.

        Returns:
            ProcessOutput with decoded stdout/stderr and the exit code.

        Raises:
            ExecutableNotFound: The process could not be spawned.
            CommandTimeout: The deadline elapsed; the process was killed.
        """
        deadline = self.timeout if timeout is None else timeout
        env = self.build_env(environment)
        program = self.resolve_executable(executable, env)
        args = [str(a) for a in arguments]
        self._log.debug("Running %s %s (cwd=%s, timeout=%ss)", executable, " ".join(args), working_directory, deadline)
        try:
            proc = await asyncio.create_subprocess_exec(
                program,
                *args,
                cwd=str(working_directory),
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            self._log.warning("Failed to start %s: %s", executable, e)
            raise ExecutableNotFound(executable) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=deadline)
        except asyncio.TimeoutError:
            await self._terminate(proc)
            self._log.warning("%s %s timed out after %ss", executable, " ".join(args), deadline)
            raise CommandTimeout(deadline) from None
        except asyncio.CancelledError:
            self._log.info("%s cancelled, terminating", executable)
            await self._terminate(proc)
            raise

        output = ProcessOutput(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=proc.returncode if proc.returncode is not None else -1,
        )
        if not output.ok:
            self._log.debug("%s exited with %s: %s", executable, output.exit_code, output.stderr.strip())
        return output

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """Kill the child's whole process group and reap it.

        Helpers the child started (a shell wrapper, git hooks) share its
        pipes; asyncio only completes `wait()` once those pipes close, so
        they are killed too and the wait is bounded by KILL_GRACE.
        """
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            proc.kill()
        try:
            await asyncio.wait_for(proc.wait(), timeout=KILL_GRACE)
        except asyncio.TimeoutError:
            # A descendant left the group and still holds the pipes
            self._log.warning("pid %s did not release its pipes after kill", proc.pid)
            transport = getattr(proc, "_transport", None)
            if transport is not None:
                transport.close()
