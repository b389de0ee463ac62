"""
Project state snapshots.

The bridge's persistence layer (outside this package) records, per
project, which tmux session it lives in and which window each agent
instance was given.  agentmux only reads those records: a ProjectState is
an immutable snapshot taken per request, and a tmux window recorded there
always outranks a freshly computed name.

Persisted shape (camelCase, as written by the bridge)::

    {
      "projectName": "demo",
      "projectPath": "/home/me/demo",
      "tmuxSession": "agent-bridge",
      "tmuxWindows": {"claude": "demo-claude"},
      "instances": {
        "claude":   {"instanceId": "claude",   "agentType": "claude", "tmuxWindow": "demo-claude"},
        "claude-2": {"instanceId": "claude-2", "agentType": "claude"}
      }
    }

``instances`` may also be a list; ``agentName`` and ``agentType`` are
accepted interchangeably.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

import structlog

logger = structlog.get_logger()


def _clean_window(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


@dataclass(frozen=True)
class AgentInstance:
    """One running instance of an agent type within a project."""

    instance_id: str
    agent_name: str
    tmux_window: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], instance_id: str = "") -> AgentInstance:
        iid = str(data.get("instanceId") or instance_id or "")
        agent = str(data.get("agentName") or data.get("agentType") or iid)
        return cls(instance_id=iid, agent_name=agent, tmux_window=_clean_window(data.get("tmuxWindow")))


@dataclass(frozen=True)
class ProjectState:
    """Read-only snapshot of one project's tmux placement."""

    project_name: str
    tmux_session: str
    tmux_windows: Mapping[str, str] = field(default_factory=dict)
    instances: tuple[AgentInstance, ...] = ()
    project_path: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProjectState:
        raw_instances = data.get("instances") or ()
        if isinstance(raw_instances, Mapping):
            instances = tuple(
                AgentInstance.from_dict(v, instance_id=k)
                for k, v in raw_instances.items()
                if isinstance(v, Mapping)
            )
        else:
            instances = tuple(AgentInstance.from_dict(v) for v in raw_instances if isinstance(v, Mapping))

        windows = data.get("tmuxWindows") or {}
        return cls(
            project_name=str(data.get("projectName", "")),
            tmux_session=str(data.get("tmuxSession", "")),
            tmux_windows={str(k): v for k, v in windows.items() if isinstance(v, str)},
            instances=instances,
            project_path=str(data.get("projectPath", "") or ""),
        )


# ---------------------------------------------------------------------------
# Normalisation and lookups
# ---------------------------------------------------------------------------


def normalize_project_state(project: ProjectState) -> ProjectState:
    """
    Return *project* with blank windows dropped and duplicate instance ids removed.

    A project recorded before multi-instance support has only the legacy
    ``tmuxWindows`` map; each entry then becomes one instance whose id is
    the agent name.
    """
    windows = {k: v for k, v in project.tmux_windows.items() if _clean_window(v)}

    seen: set[str] = set()
    instances: list[AgentInstance] = []
    for inst in project.instances:
        if not inst.instance_id:
            continue
        if inst.instance_id in seen:
            logger.warning(
                "duplicate_instance_id",
                project=project.project_name,
                instance=inst.instance_id,
            )
            continue
        seen.add(inst.instance_id)
        instances.append(inst)

    if not instances:
        instances = [
            AgentInstance(instance_id=agent, agent_name=agent, tmux_window=window)
            for agent, window in windows.items()
        ]

    return replace(project, tmux_windows=windows, instances=tuple(instances))


def get_instance(project: ProjectState, instance_id: str) -> AgentInstance | None:
    for inst in project.instances:
        if inst.instance_id == instance_id:
            return inst
    return None


def list_instances(project: ProjectState, agent_name: str | None = None) -> list[AgentInstance]:
    return [i for i in project.instances if agent_name is None or i.agent_name == agent_name]


def list_agent_names(project: ProjectState) -> list[str]:
    names: list[str] = []
    for inst in project.instances:
        if inst.agent_name not in names:
            names.append(inst.agent_name)
    return names


def primary_instance_for_agent(project: ProjectState, agent_name: str) -> AgentInstance | None:
    """
    The primary instance of *agent_name*.

    That is the instance whose id is the agent name itself, or else the
    first instance of that agent in registry order.
    """
    candidates = list_instances(project, agent_name)
    for inst in candidates:
        if inst.instance_id == agent_name:
            return inst
    return candidates[0] if candidates else None
