"""
tmux command layer.

TmuxManager turns session/window operations into tmux command lines and
hands them to a CommandExecutor, so the same code drives a local tmux
server or one reached over ssh.  Every argument is quoted on its own with
``shlex.quote``; the executor treats the finished line as opaque.

Creation is guarded by existence checks and re-checked after a failed
create, which keeps ``ensure_session_window`` idempotent when several
callers race to create the same window.
"""

from __future__ import annotations

import re
import shlex

import structlog

from agentmux.core.exceptions import TransportError
from agentmux.core.transport.executor import CommandExecutor, CommandResult

logger = structlog.get_logger()

# "gemini.1" addresses pane 1 of window "gemini"
_PANE_SUFFIX_RE = re.compile(r"^(.+)\.(\d+)$")

_NO_SERVER_MARKERS = ("no server running", "no sessions", "error connecting to")


def tmux_command(*args: str) -> str:
    """Quote every argument and prefix ``tmux``."""
    return " ".join(["tmux", *(shlex.quote(a) for a in args)])


def window_base_name(window: str) -> str:
    """Window name without an explicit ``.<pane>`` suffix."""
    match = _PANE_SUFFIX_RE.match(window)
    return match.group(1) if match else window


class TmuxManager:
    """Issue tmux commands through *executor*."""

    def __init__(
        self,
        executor: CommandExecutor,
        session_prefix: str = "",
        history_lines: int | None = None,
    ) -> None:
        self.executor = executor
        self.session_prefix = session_prefix
        self.history_lines = history_lines

    def full_session_name(self, name: str) -> str:
        if self.session_prefix and name.startswith(self.session_prefix):
            return name
        return f"{self.session_prefix}{name}"

    @staticmethod
    def target(session: str, window: str | None = None) -> str:
        return f"{session}:{window}" if window else session

    def _run(self, *args: str) -> CommandResult:
        return self.executor.execute(tmux_command(*args))

    @staticmethod
    def _no_server(result: CommandResult) -> bool:
        stderr = result.stderr.lower()
        return any(marker in stderr for marker in _NO_SERVER_MARKERS)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def list_sessions(self) -> list[str]:
        result = self._run("list-sessions", "-F", "#{session_name}")
        if not result.ok and self._no_server(result):
            return []
        result.check()
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def session_exists(self, session: str) -> bool:
        # "=" forces an exact match instead of tmux's prefix matching
        return self.executor.execute_void(tmux_command("has-session", "-t", f"={session}")) == 0

    def create_session(
        self,
        session: str,
        window: str,
        cwd: str | None = None,
        command: str | None = None,
    ) -> None:
        args = ["new-session", "-d", "-s", session, "-n", window_base_name(window)]
        if cwd:
            args += ["-c", cwd]
        if command:
            args.append(command)
        self._run(*args).check()
        logger.info("tmux_session_created", session=session, window=window)

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def list_windows(self, session: str) -> list[str]:
        result = self._run("list-windows", "-t", f"={session}", "-F", "#{window_name}")
        if not result.ok:
            if self._no_server(result) or "can't find session" in result.stderr.lower():
                return []
            result.check()
        return [line.rstrip("\n") for line in result.stdout.splitlines() if line.strip()]

    def window_exists(self, session: str, window: str) -> bool:
        return window_base_name(window) in self.list_windows(session)

    def create_window(
        self,
        session: str,
        window: str,
        cwd: str | None = None,
        command: str | None = None,
    ) -> None:
        args = ["new-window", "-d", "-t", f"{session}:", "-n", window_base_name(window)]
        if cwd:
            args += ["-c", cwd]
        if command:
            args.append(command)
        self._run(*args).check()
        logger.info("tmux_window_created", session=session, window=window)

    def ensure_session_window(
        self,
        session: str,
        window: str,
        cwd: str | None = None,
        command: str | None = None,
    ) -> bool:
        """
        Make sure *window* exists in *session*; return True if anything was created.

        A failed create is re-checked before raising: another caller may
        have created the same session or window in the meantime.  When a
        racer created the session with its own window, ours is added to it.
        """
        try:
            if not self.session_exists(session):
                self.create_session(session, window, cwd=cwd, command=command)
                return True
        except TransportError:
            if not self.session_exists(session):
                raise
            logger.debug("tmux_session_create_raced", session=session, window=window)
        return self._ensure_window(session, window, cwd=cwd, command=command)

    def _ensure_window(
        self,
        session: str,
        window: str,
        cwd: str | None = None,
        command: str | None = None,
    ) -> bool:
        try:
            if not self.window_exists(session, window):
                self.create_window(session, window, cwd=cwd, command=command)
                return True
        except TransportError:
            if self.window_exists(session, window):
                logger.debug("tmux_window_create_raced", session=session, window=window)
                return False
            raise
        return False

    # ------------------------------------------------------------------
    # Capture and input
    # ------------------------------------------------------------------

    def capture_pane(self, session: str, window: str, history_lines: int | None = None) -> str:
        """Return the pane text, including up to *history_lines* of scrollback."""
        lines = history_lines if history_lines is not None else self.history_lines
        args = ["capture-pane", "-p", "-J", "-t", self.target(session, window)]
        if lines and lines > 0:
            args += ["-S", f"-{lines}"]
        result = self._run(*args).check()
        logger.debug(
            "pane_captured",
            session=session,
            window=window,
            history_lines=lines,
            chars=len(result.stdout),
        )
        return result.stdout

    def pane_line_count(self, session: str, window: str) -> int:
        """Scrollback plus visible rows of the pane (its observed depth)."""
        result = self._run(
            "display-message",
            "-p",
            "-t",
            self.target(session, window),
            "#{history_size} #{pane_height}",
        ).check()
        total = 0
        for part in result.stdout.split():
            if part.isdigit():
                total += int(part)
        return total

    def type_keys(self, session: str, window: str, text: str) -> None:
        self._run("send-keys", "-t", self.target(session, window), "-l", text).check()

    def send_enter(self, session: str, window: str) -> None:
        self._run("send-keys", "-t", self.target(session, window), "Enter").check()

    def send_keys(self, session: str, window: str, text: str) -> None:
        """Type *text* literally and submit it."""
        self.type_keys(session, window, text)
        self.send_enter(session, window)

    # ------------------------------------------------------------------
    # Attach
    # ------------------------------------------------------------------

    @staticmethod
    def attach_command(session: str, window: str | None = None, *, inside_tmux: bool = False) -> str:
        action = "switch-client" if inside_tmux else "attach-session"
        return tmux_command(action, "-t", TmuxManager.target(session, window))
