"""agentmux window / target: inspect naming and remote target parsing."""

from __future__ import annotations

import json

import click
from rich.console import Console

from agentmux.cli._common import fail, get_config, get_project
from agentmux.core.exceptions import AgentMuxError
from agentmux.core.naming.window import project_scoped_name, resolve_window_name, sanitize_window_name
from agentmux.core.transport.executor import build_ssh_command
from agentmux.core.transport.target import resolve_remote_target

console = Console()


@click.group("window")
def window_group() -> None:
    """Window naming commands."""


@window_group.command("resolve")
@click.argument("project")
@click.argument("agent")
@click.option("--instance", default=None, help="Instance id (e.g. claude-2)")
@click.pass_context
def window_resolve(ctx: click.Context, project: str, agent: str, instance: str | None) -> None:
    """Print the tmux window used for AGENT in PROJECT."""
    try:
        config = get_config(ctx)
        state = get_project(config, project)
    except AgentMuxError as exc:
        fail(exc)
        return
    click.echo(resolve_window_name(state, agent, config.tmux, instance))


@window_group.command("sanitize")
@click.argument("project")
@click.argument("token")
@click.option("--base", default=None, help="Agent name to scope TOKEN under as an instance id")
def window_sanitize(project: str, token: str, base: str | None) -> None:
    """Print the tmux-safe name for PROJECT and TOKEN."""
    if base:
        click.echo(project_scoped_name(project, base, token))
    else:
        click.echo(sanitize_window_name(project, token))


@click.command("target")
@click.argument("raw")
@click.option("--port", type=int, default=None, help="Explicit port (overrides host:port)")
@click.option("--identity", default=None, help="ssh identity file")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
def target_cmd(raw: str, port: int | None, identity: str | None, as_json: bool) -> None:
    """Show how RAW is parsed as an ssh target."""
    try:
        target = resolve_remote_target(raw, port, identity)
    except AgentMuxError as exc:
        fail(exc)
        return

    if as_json:
        click.echo(
            json.dumps(
                {
                    "host_spec": target.host_spec,
                    "port": target.port,
                    "identity_file": target.identity_file,
                    "command": build_ssh_command(target, "tmux list-sessions"),
                }
            )
        )
        return

    console.print(f"  host:     [cyan]{target.host_spec}[/cyan]")
    console.print(f"  port:     {target.port if target.port is not None else '[dim]default[/dim]'}")
    console.print(f"  identity: {target.identity_file or '[dim]none[/dim]'}")
    console.print(f"  example:  [dim]{build_ssh_command(target, 'tmux list-sessions')}[/dim]")
