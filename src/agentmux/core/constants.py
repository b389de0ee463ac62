"""agentmux constants: filesystem layout, capture defaults, and limits."""

from __future__ import annotations

import os
import sys
from enum import IntEnum
from pathlib import Path

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    TRANSPORT_ERROR = 4


# ---------------------------------------------------------------------------
# Platform-specific config directory
# ---------------------------------------------------------------------------


def _default_data_dir() -> Path:
    """
    Return the platform-appropriate agentmux data directory.

    macOS : ~/Library/Application Support/agentmux
    Linux : ~/.config/agentmux
    Other : ~/.agentmux
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "agentmux"
    if sys.platform.startswith("linux"):
        xdg = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
        return xdg / "agentmux"
    return Path.home() / ".agentmux"


# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

CONFIG_FILENAME = "config.toml"
STATE_FILENAME = "state.json"

# ---------------------------------------------------------------------------
# tmux naming
# ---------------------------------------------------------------------------

DEFAULT_SHARED_SESSION_NAME = "bridge"
MAX_WINDOW_NAME_LENGTH = 80

# ---------------------------------------------------------------------------
# Capture tuning
# ---------------------------------------------------------------------------

LINUX_CAPTURE_BASELINE = (1200, 100)  # (history lines, redraw tail lines)
DEFAULT_CAPTURE_BASELINE = (800, 80)

# Deepest tier first: (observed lines at or above, history, tail)
CAPTURE_TIERS: tuple[tuple[int, int, int], ...] = (
    (1800, 3200, 180),
    (1200, 2400, 140),
    (800, 1800, 120),
    (400, 1200, 100),
)

MIN_HISTORY_LINES = 300
MAX_HISTORY_LINES = 4000
MIN_REDRAW_TAIL_LINES = 40
MAX_REDRAW_TAIL_LINES = 300

# ---------------------------------------------------------------------------
# Remote shell
# ---------------------------------------------------------------------------

MIN_PORT = 1
MAX_PORT = 65535
