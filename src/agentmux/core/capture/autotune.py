"""
Fleet-wide capture autotune.

Probes every recorded agent window, takes the deepest cleaned capture, and
turns it into a capture recommendation.  Values already pinned in the
config are kept; only unset fields take the recommendation.  Windows that
are gone or fail to capture are skipped, since a stale record must not
block tuning for the rest of the fleet.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from agentmux.core.capture.clean import count_lines
from agentmux.core.capture.tuning import (
    CaptureConfig,
    apply_pinned,
    clamp_capture,
    recommend_capture_tuning,
)
from agentmux.core.config import CaptureSettings, TmuxConfig
from agentmux.core.constants import MAX_HISTORY_LINES
from agentmux.core.exceptions import TransportError
from agentmux.core.naming.window import resolve_window_name
from agentmux.core.state.models import ProjectState, list_instances, normalize_project_state
from agentmux.core.tmux.manager import TmuxManager

logger = structlog.get_logger()


@dataclass(frozen=True)
class AutotuneResult:
    scanned_instances: int
    active_instances: int
    max_observed_lines: int
    tuning: CaptureConfig
    changed: bool


def autotune_capture(
    tmux: TmuxManager,
    projects: Iterable[ProjectState],
    tmux_config: TmuxConfig,
    settings: CaptureSettings | None = None,
    platform: str | None = None,
) -> AutotuneResult:
    """Scan every instance of *projects* and recommend capture sizes."""
    settings = settings or CaptureSettings()
    scanned = 0
    active = 0
    max_observed = 0

    for raw_project in projects:
        project = normalize_project_state(raw_project)
        for instance in list_instances(project):
            scanned += 1
            window = resolve_window_name(
                project, instance.agent_name, tmux_config, instance.instance_id
            )
            try:
                if not tmux.session_exists(project.tmux_session):
                    continue
                if not tmux.window_exists(project.tmux_session, window):
                    continue
                text = tmux.capture_pane(
                    project.tmux_session, window, history_lines=MAX_HISTORY_LINES
                )
            except TransportError as exc:
                logger.debug(
                    "autotune_probe_skipped",
                    project=project.project_name,
                    window=window,
                    error=str(exc),
                )
                continue

            active += 1
            max_observed = max(max_observed, count_lines(text))

    recommended = clamp_capture(recommend_capture_tuning(max_observed, platform))
    tuning = apply_pinned(
        recommended,
        history_lines=settings.history_lines,
        redraw_tail_lines=settings.redraw_tail_lines,
    )
    changed = (settings.history_lines, settings.redraw_tail_lines) != (
        tuning.history_lines,
        tuning.redraw_tail_lines,
    )

    logger.info(
        "capture_autotune_completed",
        scanned=scanned,
        active=active,
        max_observed_lines=max_observed,
        history_lines=tuning.history_lines,
        redraw_tail_lines=tuning.redraw_tail_lines,
        changed=changed,
    )
    return AutotuneResult(
        scanned_instances=scanned,
        active_instances=active,
        max_observed_lines=max_observed,
        tuning=tuning,
        changed=changed,
    )
