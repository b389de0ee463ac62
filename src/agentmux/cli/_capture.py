"""agentmux ensure / capture / tune: drive agent windows."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from agentmux.cli._common import build_session_manager, fail, get_config, get_project
from agentmux.core.capture.autotune import autotune_capture
from agentmux.core.capture.clean import clean_capture
from agentmux.core.capture.tuning import recommend_capture_tuning
from agentmux.core.config import save_capture_tuning
from agentmux.core.exceptions import AgentMuxError
from agentmux.core.state.store import load_projects
from agentmux.core.transport.factory import create_tmux_manager

console = Console()


@click.command("ensure")
@click.argument("project")
@click.argument("agent")
@click.option("--instance", default=None, help="Instance id (e.g. claude-2)")
@click.option("--command", "launch", default=None, help="Command to start in a new window")
@click.pass_context
def ensure_cmd(
    ctx: click.Context, project: str, agent: str, instance: str | None, launch: str | None
) -> None:
    """Create AGENT's tmux session/window for PROJECT if missing."""
    try:
        config = get_config(ctx)
        session = build_session_manager(config).ensure(
            get_project(config, project), agent, instance, command=launch
        )
    except AgentMuxError as exc:
        fail(exc)
        return

    verb = "created" if session.created else "exists"
    console.print(f"[green]{verb}[/green] {session.session_name}:{session.window_name}")


@click.command("capture")
@click.argument("project")
@click.argument("agent")
@click.option("--instance", default=None, help="Instance id (e.g. claude-2)")
@click.option("--lines", type=int, default=None, help="Scrollback lines (default: tuned)")
@click.option("--no-create", is_flag=True, default=False, help="Fail instead of creating the window")
@click.option("--raw", is_flag=True, default=False, help="Print text without cleaning")
@click.option("--tail", is_flag=True, default=False, help="Only print the redraw tail")
@click.pass_context
def capture_cmd(
    ctx: click.Context,
    project: str,
    agent: str,
    instance: str | None,
    lines: int | None,
    no_create: bool,
    raw: bool,
    tail: bool,
) -> None:
    """Print recent output of AGENT in PROJECT."""
    try:
        config = get_config(ctx)
        manager = build_session_manager(config)
        state = get_project(config, project)
        if no_create:
            result = manager.capture(state, agent, instance, history_lines=lines)
        else:
            result = manager.ensure_and_capture(state, agent, instance, history_lines=lines)
    except AgentMuxError as exc:
        fail(exc)
        return

    if tail:
        click.echo(result.tail())
    elif raw:
        click.echo(result.text, nl=False)
    else:
        click.echo(clean_capture(result.text))


@click.group("tune")
def tune_group() -> None:
    """Capture buffer tuning."""


@tune_group.command("show")
@click.option("--observed", type=int, default=0, show_default=True, help="Deepest pane seen (lines)")
@click.option("--platform", "platform_name", default=None, help="Host platform (default: this host)")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
def tune_show(observed: int, platform_name: str | None, as_json: bool) -> None:
    """Print the recommended capture sizes for an observed pane depth."""
    tuning = recommend_capture_tuning(observed, platform_name)
    if as_json:
        click.echo(
            json.dumps(
                {"history_lines": tuning.history_lines, "redraw_tail_lines": tuning.redraw_tail_lines}
            )
        )
        return
    console.print(f"history_lines:     {tuning.history_lines}")
    console.print(f"redraw_tail_lines: {tuning.redraw_tail_lines}")


@tune_group.command("auto")
@click.option("--save", is_flag=True, default=False, help="Pin the result into the config file")
@click.pass_context
def tune_auto(ctx: click.Context, save: bool) -> None:
    """Probe every recorded agent window and recommend capture sizes."""
    try:
        config = get_config(ctx)
        result = autotune_capture(
            create_tmux_manager(config),
            load_projects(config.state_path),
            config.tmux,
            settings=config.capture,
        )
        saved_to = None
        if save and result.changed:
            saved_to = save_capture_tuning(
                result.tuning.history_lines,
                result.tuning.redraw_tail_lines,
                path=config.config_path,
            )
    except AgentMuxError as exc:
        fail(exc)
        return

    table = Table(title="Capture autotune", show_header=False)
    table.add_row("Instances scanned", str(result.scanned_instances))
    table.add_row("Instances active", str(result.active_instances))
    table.add_row("Deepest pane (lines)", str(result.max_observed_lines))
    table.add_row("history_lines", str(result.tuning.history_lines))
    table.add_row("redraw_tail_lines", str(result.tuning.redraw_tail_lines))
    console.print(table)
    if saved_to is not None:
        console.print(f"[green]Saved[/green] to {saved_to}")
    elif result.changed:
        console.print("[dim]Run with --save to pin these values.[/dim]")
