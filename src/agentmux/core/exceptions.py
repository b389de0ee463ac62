"""agentmux exception hierarchy."""

from __future__ import annotations


class AgentMuxError(Exception):
    """Base exception for all agentmux errors."""


class ConfigError(AgentMuxError):
    """Raised when the configuration is invalid or cannot be read."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class TransportError(AgentMuxError):
    """
    Raised when a command could not be run or exited non-zero.

    ``exit_code`` is None when the process never produced one (spawn
    failure or timeout).
    """

    def __init__(
        self,
        message: str,
        *,
        command: str = "",
        exit_code: int | None = None,
        stderr: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.timed_out = timed_out


class SessionError(AgentMuxError):
    """Raised when a session manager operation ends in the failed state."""

    def __init__(self, message: str, *, kind: str = "transport", state: str = "failed") -> None:
        super().__init__(message)
        self.kind = kind
        self.state = state

    @property
    def exit_code(self) -> int | None:
        cause = self.__cause__
        return cause.exit_code if isinstance(cause, TransportError) else None

    @property
    def stderr(self) -> str:
        cause = self.__cause__
        return cause.stderr if isinstance(cause, TransportError) else ""
