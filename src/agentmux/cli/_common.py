"""Helpers shared by CLI commands: config, project lookup, manager wiring."""

from __future__ import annotations

import click
from rich.console import Console

from agentmux.core.config import AgentMuxConfig, load_config
from agentmux.core.constants import ExitCode
from agentmux.core.exceptions import AgentMuxError, ConfigError, SessionError, TransportError
from agentmux.core.session.manager import SessionManager
from agentmux.core.state.models import ProjectState
from agentmux.core.state.store import find_project, load_projects
from agentmux.core.transport.factory import create_tmux_manager

err_console = Console(stderr=True)


def get_config(ctx: click.Context) -> AgentMuxConfig:
    """Config for this invocation, loaded once and cached on the root context."""
    root = ctx.find_root()
    root.ensure_object(dict)
    if "config" not in root.obj:
        root.obj["config"] = load_config(root.obj.get("config_path"), allow_missing=True)
    return root.obj["config"]


def get_project(config: AgentMuxConfig, project_name: str) -> ProjectState:
    """
    Recorded state for *project_name*.

    A project the bridge has not recorded yet is placed in the shared
    session with no windows, which is where the bridge would create it.
    """
    project = find_project(load_projects(config.state_path), project_name)
    if project is not None:
        return project
    return ProjectState(project_name=project_name, tmux_session=config.tmux.shared_session)


def build_session_manager(config: AgentMuxConfig) -> SessionManager:
    return SessionManager(
        create_tmux_manager(config),
        config.tmux,
        capture_settings=config.capture,
    )


def fail(exc: AgentMuxError) -> None:
    """Print *exc* for the operator and exit with the matching code."""
    if isinstance(exc, ConfigError):
        err_console.print(f"[red]Config error:[/red] {exc}")
        raise SystemExit(ExitCode.CONFIG_ERROR)
    if isinstance(exc, (TransportError, SessionError)):
        err_console.print(f"[red]tmux error:[/red] {exc}")
        stderr = exc.stderr.strip()
        if stderr and stderr not in str(exc):
            err_console.print(f"[dim]{stderr}[/dim]")
        raise SystemExit(ExitCode.TRANSPORT_ERROR)
    err_console.print(f"[red]Error:[/red] {exc}")
    raise SystemExit(ExitCode.ERROR)
