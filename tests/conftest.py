"""Shared fixtures: an in-memory tmux server behind an executor, and a clean environment."""

from __future__ import annotations

import os
import shlex

import pytest

from agentmux.core.transport.executor import CommandExecutor, CommandResult

_VALUE_OPTIONS = {"-s", "-n", "-c", "-t", "-S", "-F"}


class FakeTmuxServer(CommandExecutor):
    """
    Executes tmux command lines against in-memory sessions.

    Only the subcommands TmuxManager issues are understood.  ``fail_next``
    makes the next command containing a substring exit non-zero.
    """

    transport = "fake"

    def __init__(self) -> None:
        super().__init__()
        self.sessions: dict[str, list[str]] = {}
        self.panes: dict[tuple[str, str], str] = {}
        self.depths: dict[tuple[str, str], tuple[int, int]] = {}
        self.calls: list[str] = []
        self._failures: list[tuple[str, int, str]] = []

    # -- test controls --------------------------------------------------

    def add_window(self, session: str, window: str, text: str = "") -> None:
        self.sessions.setdefault(session, [])
        if window not in self.sessions[session]:
            self.sessions[session].append(window)
        self.panes[(session, window)] = text

    def fail_next(self, substring: str, exit_code: int = 1, stderr: str = "boom") -> None:
        self._failures.append((substring, exit_code, stderr))

    def subcommands(self) -> list[str]:
        return [shlex.split(c)[1] for c in self.calls]

    # -- CommandExecutor ------------------------------------------------

    def wrap(self, command: str) -> str:
        return command

    def execute(self, command: str) -> CommandResult:
        self.calls.append(command)
        for i, (substring, code, stderr) in enumerate(self._failures):
            if substring in command:
                del self._failures[i]
                return CommandResult(command, code, "", stderr)
        argv = shlex.split(command)
        assert argv[0] == "tmux", command
        return self._dispatch(command, argv[1], argv[2:])

    def execute_void(self, command: str, *, interactive: bool = False) -> int:
        return self.execute(command).exit_code

    # -- tmux emulation -------------------------------------------------

    @staticmethod
    def _parse(args: list[str]) -> tuple[dict[str, str], list[str]]:
        opts: dict[str, str] = {}
        rest: list[str] = []
        it = iter(args)
        for arg in it:
            if arg in _VALUE_OPTIONS:
                opts[arg] = next(it)
            elif arg.startswith("-") and len(arg) == 2:
                opts[arg] = ""
            else:
                rest.append(arg)
        return opts, rest

    def _split_target(self, target: str) -> tuple[str, str]:
        session, _, window = target.partition(":")
        return session.lstrip("="), window

    def _dispatch(self, command: str, sub: str, args: list[str]) -> CommandResult:
        opts, rest = self._parse(args)
        ok = lambda out="": CommandResult(command, 0, out, "")  # noqa: E731
        err = lambda msg: CommandResult(command, 1, "", msg)  # noqa: E731

        if sub == "list-sessions":
            if not self.sessions:
                return err("no server running on /tmp/tmux-1000/default")
            return ok("".join(f"{s}\n" for s in self.sessions))

        if sub == "has-session":
            session, _ = self._split_target(opts["-t"])
            return ok() if session in self.sessions else err(f"can't find session: {session}")

        if sub == "new-session":
            session = opts["-s"]
            if session in self.sessions:
                return err(f"duplicate session: {session}")
            self.add_window(session, opts.get("-n", "0"))
            return ok()

        if sub == "list-windows":
            session, _ = self._split_target(opts["-t"])
            if session not in self.sessions:
                return err(f"can't find session: {session}")
            return ok("".join(f"{w}\n" for w in self.sessions[session]))

        if sub == "new-window":
            session, _ = self._split_target(opts["-t"])
            if session not in self.sessions:
                return err(f"can't find session: {session}")
            self.add_window(session, opts["-n"])
            return ok()

        if sub == "capture-pane":
            key = self._split_target(opts["-t"])
            if key not in self.panes:
                return err(f"can't find window: {key[1]}")
            return ok(self.panes[key])

        if sub == "display-message":
            key = self._split_target(opts["-t"])
            if key not in self.panes:
                return err(f"can't find window: {key[1]}")
            history, height = self.depths.get(key, (0, 50))
            return ok(f"{history} {height}\n")

        if sub in ("send-keys", "attach-session", "switch-client"):
            return ok()

        return err(f"unknown command: {sub}")


@pytest.fixture
def tmux_server() -> FakeTmuxServer:
    return FakeTmuxServer()


@pytest.fixture(autouse=True)
def _clean_agentmux_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's AGENTMUX_* variables out of unit tests."""
    for name in list(os.environ):
        if name.startswith("AGENTMUX_"):
            monkeypatch.delenv(name, raising=False)
