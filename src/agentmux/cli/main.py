"""
agentmux CLI entry point.

Commands:
  agentmux version                          show version
  agentmux target RAW [--port N]            show how an ssh target is parsed
  agentmux window resolve PROJECT AGENT     print the window an agent lives in
  agentmux window sanitize PROJECT TOKEN    print a tmux-safe window name
  agentmux ensure PROJECT AGENT             create the agent's session/window if missing
  agentmux capture PROJECT AGENT            ensure, then print recent pane output
  agentmux attach PROJECT [AGENT]           attach this terminal to the agent's window
  agentmux tune show [--observed N]         capture sizes for a pane depth
  agentmux tune auto [--save]               probe all recorded windows and tune capture
"""

from __future__ import annotations

import click

from agentmux import __version__
from agentmux.cli._attach import attach_cmd
from agentmux.cli._capture import capture_cmd, ensure_cmd, tune_group
from agentmux.cli._window import target_cmd, window_group


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, "--version", "-V", message="agentmux %(version)s")
@click.option("--config", "config_path", default=None, help="Config file (default: platform dir).")
@click.option("--log-level", default="WARNING", hidden=True, help="Log level for structured logging.")
@click.option("--log-json", is_flag=True, default=False, hidden=True, help="Emit JSON log lines.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str, log_json: bool) -> None:
    """agentmux: keep coding agents in tmux reachable from a chat bridge."""
    from agentmux.core.logging import configure_logging

    configure_logging(level=log_level, json_output=log_json)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command("version")
def version_cmd() -> None:
    """Show version information."""
    click.echo(f"agentmux {__version__}")


cli.add_command(target_cmd)
cli.add_command(window_group)
cli.add_command(ensure_cmd)
cli.add_command(capture_cmd)
cli.add_command(attach_cmd)
cli.add_command(tune_group)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
