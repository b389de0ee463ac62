"""Unit tests for local and ssh command executors."""

from __future__ import annotations

import shlex
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from agentmux.core.exceptions import TransportError
from agentmux.core.transport.executor import (
    CommandResult,
    LocalExecutor,
    SshExecutor,
    build_ssh_command,
    ssh_argv,
)
from agentmux.core.transport.target import RemoteTarget

_RUN = "agentmux.core.transport.executor.subprocess.run"


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestSshCommand:
    def test_target_only(self) -> None:
        argv = ssh_argv(RemoteTarget("user@host"), "tmux list-sessions")
        assert argv == ["ssh", "-o", "BatchMode=yes", "user@host", "tmux list-sessions"]

    def test_port_and_identity(self) -> None:
        argv = ssh_argv(RemoteTarget("user@host", 2222, "/tmp/id_ed25519"), "tmux ls")
        assert argv == [
            "ssh", "-o", "BatchMode=yes",
            "-p", "2222",
            "-i", "/tmp/id_ed25519",
            "user@host", "tmux ls",
        ]  # fmt: skip

    @pytest.mark.parametrize("port", [0, -1, 65536, 100000])
    def test_invalid_port_omitted(self, port: int) -> None:
        assert "-p" not in ssh_argv(RemoteTarget("host", port), "tmux ls")

    def test_boundary_ports_kept(self) -> None:
        assert ssh_argv(RemoteTarget("host", 1), "x")[3:5] == ["-p", "1"]
        assert ssh_argv(RemoteTarget("host", 65535), "x")[3:5] == ["-p", "65535"]

    def test_blank_identity_omitted(self) -> None:
        assert "-i" not in ssh_argv(RemoteTarget("host", None, "  "), "tmux ls")

    def test_batch_mode_always_present(self) -> None:
        argv = ssh_argv(RemoteTarget("host", 22, "/k"), "tmux ls")
        assert argv[1:3] == ["-o", "BatchMode=yes"]

    @pytest.mark.parametrize(
        "remote",
        [
            "tmux list-sessions",
            "tmux send-keys -t 's:w' -l 'it'\"'\"'s; rm -rf /'",
            "echo $(whoami) `id` && false || true; cat /etc/passwd | head",
            "line1\nline2",
        ],
    )
    def test_remote_command_survives_local_shell_as_one_token(self, remote: str) -> None:
        line = build_ssh_command(RemoteTarget("user@host", 2222), remote)
        tokens = shlex.split(line)
        assert tokens[-1] == remote
        assert tokens[:-1] == ["ssh", "-o", "BatchMode=yes", "-p", "2222", "user@host"]

    def test_hostile_target_is_quoted(self) -> None:
        line = build_ssh_command(RemoteTarget("host; rm -rf ~"), "tmux ls")
        assert shlex.split(line)[3] == "host; rm -rf ~"


class TestLocalExecutor:
    def test_execute_captures_output(self) -> None:
        with patch(_RUN, return_value=_completed(0, "a\nb\n")) as run:
            result = LocalExecutor().execute("tmux list-sessions")
        assert result == CommandResult("tmux list-sessions", 0, "a\nb\n", "")
        assert run.call_args.args[0] == "tmux list-sessions"
        assert run.call_args.kwargs["shell"] is True
        assert run.call_args.kwargs["capture_output"] is True

    def test_non_zero_exit_returned_not_raised(self) -> None:
        with patch(_RUN, return_value=_completed(1, "", "no server running")):
            result = LocalExecutor().execute("tmux ls")
        assert not result.ok
        assert result.exit_code == 1
        with pytest.raises(TransportError) as exc_info:
            result.check()
        assert exc_info.value.exit_code == 1
        assert "no server running" in exc_info.value.stderr

    def test_execute_void_returns_exit_status(self) -> None:
        with patch(_RUN, return_value=_completed(3)) as run:
            assert LocalExecutor().execute_void("tmux has-session -t x") == 3
        assert run.call_args.kwargs["stdout"] is subprocess.DEVNULL

    def test_execute_void_interactive_inherits_stdio(self) -> None:
        with patch(_RUN, return_value=_completed(0)) as run:
            LocalExecutor(timeout=5).execute_void("tmux attach", interactive=True)
        assert run.call_args.kwargs["stdout"] is None
        assert run.call_args.kwargs["timeout"] is None

    def test_timeout_raised_as_transport_error(self) -> None:
        exc = subprocess.TimeoutExpired(cmd="tmux ls", timeout=2)
        with patch(_RUN, side_effect=exc):
            with pytest.raises(TransportError) as exc_info:
                LocalExecutor(timeout=2).execute("tmux ls")
        assert exc_info.value.timed_out is True
        assert exc_info.value.exit_code is None

    def test_spawn_error_raised_as_transport_error(self) -> None:
        with patch(_RUN, side_effect=FileNotFoundError("sh")):
            with pytest.raises(TransportError) as exc_info:
                LocalExecutor().execute("tmux ls")
        assert exc_info.value.exit_code is None
        assert exc_info.value.command == "tmux ls"

    def test_does_not_retry(self) -> None:
        with patch(_RUN, return_value=_completed(1)) as run:
            LocalExecutor().execute("tmux ls")
        assert run.call_count == 1


class TestSshExecutor:
    def test_wraps_command(self) -> None:
        executor = SshExecutor(RemoteTarget("user@host", 2222))
        with patch(_RUN, return_value=_completed(0, "s1\n")) as run:
            result = executor.execute("tmux list-sessions")
        line = run.call_args.args[0]
        assert shlex.split(line) == [
            "ssh", "-o", "BatchMode=yes", "-p", "2222", "user@host", "tmux list-sessions",
        ]  # fmt: skip
        assert result.command == "tmux list-sessions"
        assert result.stdout == "s1\n"

    def test_execute_void_wraps_command(self) -> None:
        executor = SshExecutor(RemoteTarget("host"))
        with patch(_RUN, return_value=_completed(255)) as run:
            assert executor.execute_void("tmux has-session -t x") == 255
        assert shlex.split(run.call_args.args[0])[0] == "ssh"

    def test_same_contract_as_local(self) -> None:
        for executor in (LocalExecutor(), SshExecutor(RemoteTarget("host"))):
            with patch(_RUN, return_value=_completed(0, "out")):
                result = executor.execute("tmux ls")
            assert isinstance(result, CommandResult)
            assert result.ok and result.stdout == "out"

    def test_repr_hides_identity_path(self) -> None:
        executor = SshExecutor(RemoteTarget("host", 22, "/secret/key"))
        assert "/secret/key" not in repr(executor)
        assert "has_identity=True" in repr(executor)
