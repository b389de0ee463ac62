"""Read-only loader for the bridge's JSON project state file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from agentmux.core.exceptions import ConfigError
from agentmux.core.state.models import ProjectState

logger = structlog.get_logger()


def load_projects(path: Path | str) -> list[ProjectState]:
    """
    Load every project recorded in *path*.

    Accepts ``{"projects": {name: {...}}}``, ``{"projects": [...]}`` or a
    bare list.  A missing file means no projects yet.  The file is re-read
    on every call so records written by another process are always seen.
    """
    state_path = Path(path).expanduser()
    if not state_path.exists():
        return []

    try:
        data: Any = json.loads(state_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read project state {state_path}: {exc}") from exc

    raw = data.get("projects", {}) if isinstance(data, dict) else data
    if isinstance(raw, dict):
        entries = [
            {"projectName": name, **value} for name, value in raw.items() if isinstance(value, dict)
        ]
    elif isinstance(raw, list):
        entries = [e for e in raw if isinstance(e, dict)]
    else:
        entries = []

    projects = [ProjectState.from_dict(e) for e in entries]
    logger.debug("project_state_loaded", path=str(state_path), projects=len(projects))
    return projects


def find_project(projects: list[ProjectState], project_name: str) -> ProjectState | None:
    for project in projects:
        if project.project_name == project_name:
            return project
    return None
