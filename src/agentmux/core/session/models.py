"""
Bridge request models.

Each request for one (project, agent, instance) identity walks:

    UNKNOWN → RESOLVING → ACTIVE → CAPTURED
                  │          │
                  └──────────┴──→ FAILED

CAPTURED and FAILED end a request.  The next request for the same identity
starts again at RESOLVING; nothing is torn down between requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from agentmux.core.capture.clean import tail_lines
from agentmux.core.capture.tuning import CaptureConfig


class BridgeState(StrEnum):
    UNKNOWN = "unknown"
    RESOLVING = "resolving"  # Window name and capture sizes being computed
    ACTIVE = "active"  # Session and window known to exist
    CAPTURED = "captured"  # Pane text read
    FAILED = "failed"  # Transport or lookup failure surfaced to the caller


TERMINAL_STATES = frozenset({BridgeState.CAPTURED, BridgeState.FAILED})

VALID_BRIDGE_TRANSITIONS: dict[BridgeState, frozenset[BridgeState]] = {
    BridgeState.UNKNOWN: frozenset({BridgeState.RESOLVING}),
    # RESOLVING may be re-entered after an interrupted request
    BridgeState.RESOLVING: frozenset(
        {BridgeState.RESOLVING, BridgeState.ACTIVE, BridgeState.FAILED}
    ),
    BridgeState.ACTIVE: frozenset({BridgeState.CAPTURED, BridgeState.FAILED, BridgeState.RESOLVING}),
    BridgeState.CAPTURED: frozenset({BridgeState.RESOLVING}),
    BridgeState.FAILED: frozenset({BridgeState.RESOLVING}),
}


@dataclass(frozen=True)
class AgentKey:
    """Identity of one agent slot."""

    project: str
    agent: str
    instance: str | None = None

    def label(self) -> str:
        return f"{self.project}/{self.instance or self.agent}"


@dataclass
class AgentSession:
    """Per-identity bookkeeping kept by the SessionManager."""

    key: AgentKey
    state: BridgeState = BridgeState.UNKNOWN
    session_name: str = ""
    window_name: str = ""
    capture: CaptureConfig | None = None
    observed_lines: int = 0
    created: bool = False  # Set when the last ensure created the session or window
    error: str = ""
    updated_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def transition(self, new_state: BridgeState) -> None:
        if new_state not in VALID_BRIDGE_TRANSITIONS[self.state]:
            raise ValueError(f"Invalid bridge transition {self.state} → {new_state}")
        self.state = new_state
        self.updated_at = datetime.now(UTC).isoformat()

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(frozen=True)
class CaptureResult:
    """What a successful ensure+capture hands back to chat formatting code."""

    key: AgentKey
    session_name: str
    window_name: str
    text: str
    capture: CaptureConfig
    created: bool = False

    def tail(self) -> str:
        """Last ``redraw_tail_lines`` of the cleaned capture (full-screen redraw fallback)."""
        return tail_lines(self.text, self.capture.redraw_tail_lines)
