"""agentmux attach: open an agent's tmux window in this terminal."""

from __future__ import annotations

import os

import click
from rich.console import Console

from agentmux.cli._common import fail, get_config, get_project
from agentmux.core.exceptions import AgentMuxError
from agentmux.core.naming.window import resolve_window_name
from agentmux.core.tmux.manager import TmuxManager
from agentmux.core.transport.factory import create_executor

console = Console()


@click.command("attach")
@click.argument("project")
@click.argument("agent", required=False)
@click.option("--instance", default=None, help="Instance id (e.g. claude-2)")
@click.option("--print", "print_only", is_flag=True, default=False, help="Print the command only")
@click.pass_context
def attach_cmd(
    ctx: click.Context,
    project: str,
    agent: str | None,
    instance: str | None,
    print_only: bool,
) -> None:
    """Attach to PROJECT's session, at AGENT's window when given."""
    try:
        config = get_config(ctx)
        state = get_project(config, project)
        executor = create_executor(config.tmux)
    except AgentMuxError as exc:
        fail(exc)
        return

    window = resolve_window_name(state, agent, config.tmux, instance) if agent else None
    inside_tmux = bool(os.environ.get("TMUX"))
    session_cmd = TmuxManager.attach_command(state.tmux_session, inside_tmux=inside_tmux)
    window_cmd = (
        TmuxManager.attach_command(state.tmux_session, window, inside_tmux=inside_tmux)
        if window
        else None
    )

    if print_only:
        click.echo(executor.wrap(window_cmd or session_cmd))
        return

    try:
        if window_cmd is not None:
            if executor.execute_void(window_cmd, interactive=True) == 0:
                return
            console.print(
                f"[yellow]Window {window!r} not found, attaching to session "
                f"{state.tmux_session!r} instead.[/yellow]"
            )
        code = executor.execute_void(session_cmd, interactive=True)
    except AgentMuxError as exc:
        fail(exc)
        return
    if code != 0:
        raise SystemExit(code)
