"""
Auto-apply @pytest.mark.e2e to all tests in tests/e2e/.

These tests drive a real local tmux server and are skipped unless
AGENTMUX_E2E_TMUX=1 is set and ``tmux`` is on PATH.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

_E2E_DIR = Path(__file__).parent

_ENABLED = os.environ.get("AGENTMUX_E2E_TMUX") == "1" and shutil.which("tmux") is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Add 'e2e' marker to every test collected from this directory."""
    marker = pytest.mark.e2e
    skip = pytest.mark.skip(reason="set AGENTMUX_E2E_TMUX=1 with tmux installed")
    for item in items:
        if str(_E2E_DIR) in str(item.fspath):
            item.add_marker(marker)
            if not _ENABLED:
                item.add_marker(skip)
