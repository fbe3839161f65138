"""Tests for pbview.services.process_runner (real child processes)."""

import asyncio
import os
import sys
import time
from pathlib import Path

import pytest

from pbview.errors import CommandTimeout, ExecutableNotFound
from pbview.services.process_runner import (
    NON_INTERACTIVE_ENV,
    ProcessOutput,
    ProcessRunner,
    default_extra_paths,
)

PY = sys.executable


class TestBuildEnv:
    """ProcessRunner.build_env."""

    def test_path_widened_and_non_interactive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Extra paths come first, inherited PATH last, pager/colour disabled."""
        monkeypatch.setenv("PATH", "/usr/bin")
        runner = ProcessRunner(extra_paths=["/opt/pb/bin"])
        env = runner.build_env()
        parts = env["PATH"].split(os.pathsep)
        assert parts[0] == "/opt/pb/bin"
        assert parts[-1] == "/usr/bin"
        for p in default_extra_paths():
            assert p in parts
        for key, value in NON_INTERACTIVE_ENV.items():
            assert env[key] == value

    def test_missing_path_gets_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Without PATH a minimal system PATH is used."""
        monkeypatch.delenv("PATH", raising=False)
        env = ProcessRunner().build_env()
        assert env["PATH"].endswith("/usr/bin:/bin:/usr/sbin:/sbin")

    def test_override_order(self) -> None:
        """Per-call environment beats configured extras, which beat defaults."""
        runner = ProcessRunner(extra_env={"TERM": "xterm", "A": "1"})
        env = runner.build_env({"A": "2"})
        assert env["TERM"] == "xterm"
        assert env["A"] == "2"


class TestResolveExecutable:
    """ProcessRunner.resolve_executable."""

    def test_absolute_passes_through(self) -> None:
        """Absolute paths are not looked up."""
        runner = ProcessRunner()
        assert runner.resolve_executable("/does/not/exist/pb", runner.build_env()) == "/does/not/exist/pb"

    def test_bare_name_found_via_extra_path(self, tmp_path: Path) -> None:
        """A bare name is found in a configured extra directory."""
        tool = tmp_path / "pbfake"
        tool.write_text("#!/bin/sh\necho hi\n")
        tool.chmod(0o755)
        runner = ProcessRunner(extra_paths=[str(tmp_path)])
        assert runner.resolve_executable("pbfake", runner.build_env()) == str(tool)

    def test_bare_name_missing(self) -> None:
        """An unknown bare name raises ExecutableNotFound."""
        runner = ProcessRunner()
        with pytest.raises(ExecutableNotFound) as exc_info:
            runner.resolve_executable("pbview-no-such-binary-xyz", runner.build_env())
        assert exc_info.value.path == "pbview-no-such-binary-xyz"


class TestRun:
    """ProcessRunner.run with real processes."""

    @pytest.mark.asyncio
    async def test_captures_stdout_stderr_exit_code(self, tmp_path: Path) -> None:
        """stdout, stderr and a non-zero exit are returned as data."""
        runner = ProcessRunner(timeout=10)
        code = "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"
        output = await runner.run(PY, ["-c", code], working_directory=tmp_path)
        assert isinstance(output, ProcessOutput)
        assert output.stdout == "out\n"
        assert output.stderr == "err\n"
        assert output.exit_code == 3
        assert not output.ok

    @pytest.mark.asyncio
    async def test_working_directory_and_env(self, tmp_path: Path) -> None:
        """The child runs in the given directory with merged environment."""
        runner = ProcessRunner(timeout=10, extra_env={"FROM_CONFIG": "c"})
        code = "import os; print(os.getcwd()); print(os.environ['NO_COLOR'], os.environ['FROM_CONFIG'], os.environ['X'])"
        output = await runner.run(PY, ["-c", code], working_directory=tmp_path, environment={"X": "y"})
        cwd, values = output.stdout.splitlines()
        assert Path(cwd).resolve() == tmp_path.resolve()
        assert values == "1 c y"
        assert output.ok

    @pytest.mark.asyncio
    async def test_utf8_output(self) -> None:
        """Box-drawing output is decoded as UTF-8."""
        runner = ProcessRunner(timeout=10)
        code = "import sys; sys.stdout.buffer.write('\\u2514\\u2500\\u2500 pv-a \\u25cf\\n'.encode('utf-8'))"
        output = await runner.run(PY, ["-c", code])
        assert output.stdout == "└── pv-a ●\n"

    @pytest.mark.asyncio
    async def test_missing_absolute_executable(self) -> None:
        """A missing absolute path fails with ExecutableNotFound, without hanging."""
        runner = ProcessRunner(timeout=5)
        with pytest.raises(ExecutableNotFound):
            await runner.run("/nonexistent/dir/pb", ["list"])

    @pytest.mark.asyncio
    async def test_missing_bare_executable(self) -> None:
        """A missing bare name fails with ExecutableNotFound."""
        with pytest.raises(ExecutableNotFound):
            await ProcessRunner(timeout=5).run("pbview-no-such-binary-xyz")

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self) -> None:
        """A process outliving the deadline is killed and CommandTimeout raised."""
        runner = ProcessRunner(timeout=0.5)
        start = time.monotonic()
        with pytest.raises(CommandTimeout) as exc_info:
            await runner.run(PY, ["-c", "import time; time.sleep(30)"])
        assert time.monotonic() - start < 10
        assert exc_info.value.timeout == 0.5

    @pytest.mark.asyncio
    async def test_per_call_timeout(self) -> None:
        """The timeout argument overrides the runner default."""
        runner = ProcessRunner(timeout=60)
        with pytest.raises(CommandTimeout):
            await runner.run(PY, ["-c", "import time; time.sleep(30)"], timeout=0.3)

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_independent(self) -> None:
        """Concurrent invocations each get their own output."""
        runner = ProcessRunner(timeout=10)
        outputs = await asyncio.gather(*(runner.run(PY, ["-c", f"print({i})"]) for i in range(5)))
        assert [o.stdout.strip() for o in outputs] == ["0", "1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_timeout_with_grandchild_holding_pipes(self) -> None:
        """A shell whose child inherited stdout still times out promptly."""
        runner = ProcessRunner(timeout=0.5)
        start = time.monotonic()
        with pytest.raises(CommandTimeout):
            await runner.run("sh", ["-c", "sleep 30; echo x"])
        assert time.monotonic() - start < 5

    @pytest.mark.asyncio
    async def test_cancellation_kills_child(self, tmp_path: Path) -> None:
        """Cancelling the caller kills and reaps the child, then re-raises."""
        pid_file = tmp_path / "pid"
        code = f"import os, time; open({str(pid_file)!r}, 'w').write(str(os.getpid())); time.sleep(30)"
        runner = ProcessRunner(timeout=60)
        task = asyncio.create_task(runner.run(PY, ["-c", code]))
        for _ in range(100):
            if pid_file.exists() and pid_file.read_text():
                break
            await asyncio.sleep(0.05)
        pid = int(pid_file.read_text())
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)
