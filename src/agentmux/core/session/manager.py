"""
Session manager.

Serves bridge requests of the form "make sure agent X of project P
(instance I) is running in tmux, and give me its recent output":

  1. resolve the window name (recorded mapping first, computed otherwise)
     and the capture sizes for the last depth observed for that identity
  2. create the tmux session/window if absent (idempotent)
  3. capture the pane and remember its depth for the next request

Invariants:
  - Nothing is retried here.  A transport failure moves the request to
    FAILED and is raised as SessionError carrying the exit detail.
  - Sessions and windows are never killed by this class.
  - Requests for different identities share no state except the
    per-identity bookkeeping map, which is guarded by a lock.
  - Callers must let ``ensure`` finish before ``capture`` for the same
    identity; ``ensure_and_capture`` does both in order.  Overlapping
    requests for one identity that step out of order fail with
    SessionError(kind="invalid_transition").
"""

from __future__ import annotations

import threading

import structlog

from agentmux.core.capture.clean import count_lines
from agentmux.core.capture.tuning import (
    CaptureConfig,
    apply_pinned,
    clamp_capture,
    recommend_capture_tuning,
)
from agentmux.core.config import CaptureSettings, TmuxConfig
from agentmux.core.exceptions import SessionError, TransportError
from agentmux.core.naming.window import resolve_window_name
from agentmux.core.session.models import (
    AgentKey,
    AgentSession,
    BridgeState,
    CaptureResult,
)
from agentmux.core.state.models import ProjectState
from agentmux.core.tmux.manager import TmuxManager

logger = structlog.get_logger()


class SessionManager:
    """Ensure/capture pipeline over a TmuxManager."""

    def __init__(
        self,
        tmux: TmuxManager,
        tmux_config: TmuxConfig,
        capture_settings: CaptureSettings | None = None,
        platform: str | None = None,
    ) -> None:
        self.tmux = tmux
        self.tmux_config = tmux_config
        self.capture_settings = capture_settings or CaptureSettings()
        self.platform = platform
        self._sessions: dict[AgentKey, AgentSession] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def get(self, key: AgentKey) -> AgentSession | None:
        with self._lock:
            return self._sessions.get(key)

    def _session_for(self, key: AgentKey) -> AgentSession:
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = AgentSession(key=key)
                self._sessions[key] = session
            return session

    def record_observed_lines(self, key: AgentKey, lines: int) -> None:
        """Seed the depth used for the next capture recommendation of *key*."""
        self._session_for(key).observed_lines = max(0, int(lines))

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def resolve(
        self,
        project: ProjectState,
        agent: str,
        instance: str | None = None,
    ) -> AgentSession:
        """Move *agent*'s identity to RESOLVING and compute window + capture sizes."""
        key = AgentKey(project.project_name, agent, instance)
        session = self._session_for(key)
        self._transition(session, BridgeState.RESOLVING)
        session.error = ""
        session.created = False
        session.session_name = project.tmux_session or self.tmux.full_session_name(
            project.project_name
        )
        # Always recomputed: another process may have recorded a window since
        session.window_name = resolve_window_name(project, agent, self.tmux_config, instance)
        session.capture = self.recommend_capture(session.observed_lines)
        return session

    def recommend_capture(self, observed_lines: int) -> CaptureConfig:
        """
        Capture sizes for a pane *observed_lines* deep.

        A configured ``history_lines`` is the advisor's starting baseline,
        so deeper panes still scale above it; a configured
        ``redraw_tail_lines`` is a hard pin.
        """
        settings = self.capture_settings
        recommended = recommend_capture_tuning(
            observed_lines, self.platform, history_override=settings.history_lines
        )
        return apply_pinned(clamp_capture(recommended), redraw_tail_lines=settings.redraw_tail_lines)

    def ensure(
        self,
        project: ProjectState,
        agent: str,
        instance: str | None = None,
        command: str | None = None,
    ) -> AgentSession:
        """Resolve, then create the session/window if absent. Ends in ACTIVE."""
        session = self.resolve(project, agent, instance)
        log = logger.bind(project=project.project_name, agent=agent, instance=instance)
        try:
            created = self.tmux.ensure_session_window(
                session.session_name,
                session.window_name,
                cwd=project.project_path or None,
                command=command,
            )
        except TransportError as exc:
            raise self._fail(session, exc, log) from exc

        self._transition(session, BridgeState.ACTIVE)
        log.info(
            "agent_window_ready",
            session=session.session_name,
            window=session.window_name,
            created=created,
        )
        session.created = created
        return session

    def capture(
        self,
        project: ProjectState,
        agent: str,
        instance: str | None = None,
        history_lines: int | None = None,
    ) -> CaptureResult:
        """
        Capture an existing window without creating anything.

        A missing window is a defined failure (kind ``missing_window``).
        """
        session = self.resolve(project, agent, instance)
        log = logger.bind(project=project.project_name, agent=agent, instance=instance)
        try:
            exists = self.tmux.session_exists(session.session_name) and self.tmux.window_exists(
                session.session_name, session.window_name
            )
        except TransportError as exc:
            raise self._fail(session, exc, log) from exc

        if not exists:
            self._transition(session, BridgeState.FAILED)
            session.error = f"window {session.window_name!r} not found in {session.session_name!r}"
            log.warning("agent_window_missing", session=session.session_name, window=session.window_name)
            raise SessionError(session.error, kind="missing_window", state=session.state)

        self._transition(session, BridgeState.ACTIVE)
        return self._capture_active(session, log, history_lines=history_lines)

    def ensure_and_capture(
        self,
        project: ProjectState,
        agent: str,
        instance: str | None = None,
        command: str | None = None,
        history_lines: int | None = None,
    ) -> CaptureResult:
        """Ensure the window exists, then capture it."""
        session = self.ensure(project, agent, instance, command=command)
        log = logger.bind(project=project.project_name, agent=agent, instance=instance)
        return self._capture_active(
            session, log, history_lines=history_lines, created=session.created
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _capture_active(
        self,
        session: AgentSession,
        log: structlog.stdlib.BoundLogger,
        history_lines: int | None = None,
        created: bool = False,
    ) -> CaptureResult:
        capture = session.capture or self.recommend_capture(session.observed_lines)
        if history_lines is not None:
            capture = CaptureConfig(history_lines, capture.redraw_tail_lines)

        try:
            text = self.tmux.capture_pane(
                session.session_name, session.window_name, history_lines=capture.history_lines
            )
        except TransportError as exc:
            raise self._fail(session, exc, log) from exc

        session.observed_lines = count_lines(text)
        self._transition(session, BridgeState.CAPTURED)
        log.debug(
            "agent_pane_captured",
            window=session.window_name,
            lines=session.observed_lines,
            history_lines=capture.history_lines,
        )
        return CaptureResult(
            key=session.key,
            session_name=session.session_name,
            window_name=session.window_name,
            text=text,
            capture=capture,
            created=created,
        )

    @staticmethod
    def _transition(session: AgentSession, new_state: BridgeState) -> None:
        try:
            session.transition(new_state)
        except ValueError as exc:
            # An overlapping request for the same identity moved it first
            raise SessionError(str(exc), kind="invalid_transition", state=session.state) from exc

    def _fail(
        self,
        session: AgentSession,
        exc: TransportError,
        log: structlog.stdlib.BoundLogger,
    ) -> SessionError:
        self._transition(session, BridgeState.FAILED)
        session.error = str(exc)
        log.warning(
            "agent_request_failed",
            session=session.session_name,
            window=session.window_name,
            exit_code=exc.exit_code,
            timed_out=exc.timed_out,
            error=str(exc),
        )
        return SessionError(str(exc), kind="transport", state=session.state)
