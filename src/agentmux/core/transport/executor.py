"""
Command executors.

One contract, two bindings:

  LocalExecutor: runs the command through the local shell
  SshExecutor:   wraps the command in ``ssh -o BatchMode=yes ...`` and runs
                 the wrapper through the local shell

Callers hold a CommandExecutor and never branch on which one they got.
Executors are stateless beyond their binding, so one instance can serve
any number of concurrent calls.  Nothing here retries: a non-zero exit is
returned to the caller as-is, and spawn failures or timeouts are raised as
TransportError.
"""

from __future__ import annotations

import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog

from agentmux.core.constants import MAX_PORT, MIN_PORT
from agentmux.core.exceptions import TransportError
from agentmux.core.transport.target import RemoteTarget

logger = structlog.get_logger()


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one executed command."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def check(self) -> CommandResult:
        """Return self, or raise TransportError if the command failed."""
        if not self.ok:
            detail = self.stderr.strip() or f"exit status {self.exit_code}"
            raise TransportError(
                f"Command failed: {detail}",
                command=self.command,
                exit_code=self.exit_code,
                stderr=self.stderr,
            )
        return self


class CommandExecutor(ABC):
    """
    Abstract command executor.

    Subclasses only decide how a command line is wrapped before it reaches
    the local shell; process handling is shared.
    """

    transport: str = ""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    @abstractmethod
    def wrap(self, command: str) -> str:
        """Return the exact line handed to the local shell for *command*."""

    def execute(self, command: str) -> CommandResult:
        """Run *command*, capturing stdout and stderr."""
        wrapped = self.wrap(command)
        try:
            proc = subprocess.run(
                wrapped,
                shell=True,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise self._timeout_error(command, exc) from exc
        except OSError as exc:
            raise self._spawn_error(command, exc) from exc

        result = CommandResult(
            command=command,
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        self._log_result(result)
        return result

    def execute_void(self, command: str, *, interactive: bool = False) -> int:
        """
        Run *command* for its exit status only.

        Output is discarded, or inherited from this process when
        *interactive* is set (e.g. ``tmux attach``).
        """
        wrapped = self.wrap(command)
        stream = None if interactive else subprocess.DEVNULL
        try:
            proc = subprocess.run(
                wrapped,
                shell=True,
                stdout=stream,
                stderr=stream,
                timeout=None if interactive else self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise self._timeout_error(command, exc) from exc
        except OSError as exc:
            raise self._spawn_error(command, exc) from exc

        if proc.returncode != 0:
            logger.debug(
                "executor_command_failed",
                transport=self.transport,
                command=command,
                exit_code=proc.returncode,
            )
        return proc.returncode

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _log_result(self, result: CommandResult) -> None:
        if result.ok:
            logger.debug("executor_command", transport=self.transport, command=result.command)
        else:
            logger.debug(
                "executor_command_failed",
                transport=self.transport,
                command=result.command,
                exit_code=result.exit_code,
                stderr=result.stderr.strip()[:200],
            )

    def _timeout_error(self, command: str, exc: subprocess.TimeoutExpired) -> TransportError:
        logger.warning(
            "executor_command_timeout",
            transport=self.transport,
            command=command,
            timeout=self.timeout,
        )
        stderr = exc.stderr or ""
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        return TransportError(
            f"Command timed out after {self.timeout}s",
            command=command,
            stderr=stderr,
            timed_out=True,
        )

    def _spawn_error(self, command: str, exc: OSError) -> TransportError:
        logger.warning(
            "executor_spawn_failed",
            transport=self.transport,
            command=command,
            error=str(exc),
        )
        return TransportError(f"Cannot run command: {exc}", command=command, stderr=str(exc))


class LocalExecutor(CommandExecutor):
    """Runs commands on this host."""

    transport = "local"

    def wrap(self, command: str) -> str:
        return command


def _valid_port(port: object) -> bool:
    return isinstance(port, int) and not isinstance(port, bool) and MIN_PORT <= port <= MAX_PORT


def ssh_argv(target: RemoteTarget, remote_command: str) -> list[str]:
    """
    Build the ssh argument vector for *remote_command*.

    BatchMode keeps ssh from ever prompting: a host that needs a password
    fails within ssh's own connect timeout instead of hanging the bridge.
    An invalid port is dropped (ssh falls back to its default), a blank
    identity is ignored.
    """
    argv = ["ssh", "-o", "BatchMode=yes"]
    if _valid_port(target.port):
        argv += ["-p", str(target.port)]
    if target.identity_file and target.identity_file.strip():
        argv += ["-i", target.identity_file.strip()]
    argv += [target.host_spec, remote_command]
    return argv


def build_ssh_command(target: RemoteTarget, remote_command: str) -> str:
    """Shell line running *remote_command* on *target*; every token is quoted."""
    return " ".join(shlex.quote(part) for part in ssh_argv(target, remote_command))


class SshExecutor(CommandExecutor):
    """Runs commands on a remote host through the ssh client."""

    transport = "ssh"

    def __init__(self, target: RemoteTarget, timeout: float | None = None) -> None:
        super().__init__(timeout=timeout)
        self.target = target

    def wrap(self, command: str) -> str:
        return build_ssh_command(self.target, command)

    def __repr__(self) -> str:
        return (
            f"SshExecutor(host={self.target.host_spec!r}, port={self.target.port!r}, "
            f"has_identity={self.target.identity_file is not None})"
        )
