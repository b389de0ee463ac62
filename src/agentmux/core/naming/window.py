"""
Window identity resolution.

Every (project, agent, instance) triple maps to one tmux window name, and
that name must come out the same on every call: it is how the bridge
re-attaches to the live agent process after a restart.

Resolution order (first match wins):
  1. tmux window recorded for the requested instance
  2. tmux window recorded for the agent's primary instance
  3. legacy per-agent ``tmuxWindows`` entry
  4. shared session: sanitized ``<project>-<instance or agent>``
  5. the raw instance id (or agent name)

Recorded names always outrank computed ones, so a window created under an
older naming rule stays reachable.
"""

from __future__ import annotations

import re

import structlog

from agentmux.core.config import TmuxConfig
from agentmux.core.constants import MAX_WINDOW_NAME_LENGTH
from agentmux.core.state.models import (
    ProjectState,
    get_instance,
    normalize_project_state,
    primary_instance_for_agent,
)

logger = structlog.get_logger()

_CONTROL_RE = re.compile(r"[:\n\r\t]")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]")
_DASH_RUN_RE = re.compile(r"-+")


def _clean(text: str) -> str:
    safe = _CONTROL_RE.sub("-", text)
    safe = _UNSAFE_RE.sub("-", safe)
    return _DASH_RUN_RE.sub("-", safe).strip("-")


def sanitize_window_name(project_name: str, token: str) -> str:
    """
    Build a tmux-safe window name ``<project>-<token>``.

    The result only holds ``[A-Za-z0-9._-]``, has no leading/trailing or
    doubled ``-`` and is at most 80 characters.  A token that already is,
    or starts with, the cleaned project prefix is not prefixed again, so
    sanitizing a sanitized name is a no-op.  The price is that tokens
    ``b`` and ``<project>-b`` share a name.  If nothing survives, the raw
    *token* is returned unchanged.
    """
    prefix = _clean(project_name)
    body = _clean(token)
    if prefix and (body == prefix or body.startswith(f"{prefix}-")):
        safe = body
    else:
        safe = "-".join(part for part in (prefix, body) if part)
    # Truncation can expose a trailing dash
    safe = safe[:MAX_WINDOW_NAME_LENGTH].rstrip("-")
    return safe or token


def project_scoped_name(project_name: str, base: str, instance_id: str) -> str:
    """Window name for *instance_id* of agent *base* without double-prefixing."""
    if instance_id == base:
        return sanitize_window_name(project_name, base)
    if instance_id.startswith(f"{base}-"):
        return sanitize_window_name(project_name, instance_id)
    return sanitize_window_name(project_name, f"{base}-{instance_id}")


def resolve_window_name(
    project: ProjectState,
    agent_name: str,
    tmux_config: TmuxConfig,
    instance_id: str | None = None,
) -> str:
    """Return the tmux window name for *agent_name* (or one of its instances) in *project*."""
    window, source = _resolve(project, agent_name, tmux_config, instance_id)
    logger.debug(
        "window_name_resolved",
        project=project.project_name,
        agent=agent_name,
        instance=instance_id,
        window=window,
        source=source,
    )
    return window


def _resolve(
    project: ProjectState,
    agent_name: str,
    tmux_config: TmuxConfig,
    instance_id: str | None,
) -> tuple[str, str]:
    normalized = normalize_project_state(project)

    if instance_id:
        instance = get_instance(normalized, instance_id)
        if instance is not None and instance.tmux_window:
            return instance.tmux_window, "instance"

    primary = primary_instance_for_agent(normalized, agent_name)
    if primary is not None and primary.tmux_window:
        return primary.tmux_window, "primary"

    legacy = normalized.tmux_windows.get(agent_name)
    if legacy:
        return legacy, "legacy"

    token = instance_id or agent_name
    if project.tmux_session == tmux_config.shared_session:
        return sanitize_window_name(project.project_name, token), "shared"
    return token, "raw"
