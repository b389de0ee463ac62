"""
Capture tuning advisor.

Recommends how much scrollback to read per capture (``history_lines``) and
how many trailing lines to fall back to when a full-screen redraw makes a
line diff useless (``redraw_tail_lines``).  Pure functions only: callers
pass the deepest pane depth they observed and the host platform.

Linux hosts get a deeper baseline because agents there usually run in
long-lived servers with large scrollback.  Once observed panes are deeper
than the baseline, the recommendation steps up through fixed tiers.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

from agentmux.core.constants import (
    CAPTURE_TIERS,
    DEFAULT_CAPTURE_BASELINE,
    LINUX_CAPTURE_BASELINE,
    MAX_HISTORY_LINES,
    MAX_REDRAW_TAIL_LINES,
    MIN_HISTORY_LINES,
    MIN_REDRAW_TAIL_LINES,
)


@dataclass(frozen=True)
class CaptureConfig:
    history_lines: int
    redraw_tail_lines: int


def _as_line_count(value: object) -> int:
    try:
        lines = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(0, lines)


def platform_baseline(platform: str | None = None) -> CaptureConfig:
    """Baseline for *platform* (defaults to the running interpreter's)."""
    platform = sys.platform if platform is None else platform
    history, tail = LINUX_CAPTURE_BASELINE if platform.startswith("linux") else DEFAULT_CAPTURE_BASELINE
    return CaptureConfig(history_lines=history, redraw_tail_lines=tail)


def recommend_capture_tuning(
    observed_lines: int,
    platform: str | None = None,
    history_override: int | None = None,
) -> CaptureConfig:
    """
    Recommend capture sizes for panes up to *observed_lines* deep.

    Never fails: unusable input counts as zero observed lines.  A
    *history_override* (pinned ``capture.history_lines``) replaces the
    platform's baseline history before scaling is considered.

    >>> recommend_capture_tuning(1300, "linux")
    CaptureConfig(history_lines=2400, redraw_tail_lines=140)
    """
    lines = _as_line_count(observed_lines)
    baseline = platform_baseline(platform)
    if history_override:
        baseline = CaptureConfig(history_override, baseline.redraw_tail_lines)

    if lines <= baseline.history_lines:
        return baseline

    for threshold, history, tail in CAPTURE_TIERS:
        if lines >= threshold:
            return CaptureConfig(
                history_lines=max(history, baseline.history_lines),
                redraw_tail_lines=max(tail, baseline.redraw_tail_lines),
            )
    return baseline


def clamp_capture(config: CaptureConfig) -> CaptureConfig:
    """Bound *config* to the range tmux captures are allowed to use."""
    return CaptureConfig(
        history_lines=min(MAX_HISTORY_LINES, max(MIN_HISTORY_LINES, config.history_lines)),
        redraw_tail_lines=min(
            MAX_REDRAW_TAIL_LINES, max(MIN_REDRAW_TAIL_LINES, config.redraw_tail_lines)
        ),
    )


def apply_pinned(
    recommended: CaptureConfig,
    history_lines: int | None = None,
    redraw_tail_lines: int | None = None,
) -> CaptureConfig:
    """Explicitly configured values win over the recommendation, field by field."""
    return CaptureConfig(
        history_lines=history_lines if history_lines is not None else recommended.history_lines,
        redraw_tail_lines=(
            redraw_tail_lines if redraw_tail_lines is not None else recommended.redraw_tail_lines
        ),
    )
