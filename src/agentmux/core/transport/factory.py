"""Build executors and tmux managers from configuration."""

from __future__ import annotations

import structlog

from agentmux.core.config import AgentMuxConfig, TmuxConfig
from agentmux.core.exceptions import ConfigError
from agentmux.core.transport.executor import CommandExecutor, LocalExecutor, SshExecutor
from agentmux.core.transport.target import resolve_remote_target

logger = structlog.get_logger()


def create_executor(tmux_config: TmuxConfig, timeout: float | None = None) -> CommandExecutor:
    """
    Return the executor for the configured transport.

    Raises ConfigError, before anything is spawned, when ssh transport is
    selected without a target.
    """
    if tmux_config.transport == "ssh":
        raw = (tmux_config.ssh_target or "").strip()
        if not raw:
            raise ConfigError("tmux transport is set to ssh but no ssh target is configured")
        target = resolve_remote_target(raw, tmux_config.ssh_port, tmux_config.ssh_identity)
        logger.debug(
            "executor_created",
            transport="ssh",
            host=target.host_spec,
            port=target.port,
            has_identity=target.identity_file is not None,
        )
        return SshExecutor(target, timeout=timeout)

    logger.debug("executor_created", transport="local")
    return LocalExecutor(timeout=timeout)


def create_tmux_manager(config: AgentMuxConfig, executor: CommandExecutor | None = None):
    """TmuxManager bound to *executor*, or to the executor the config selects."""
    from agentmux.core.tmux.manager import TmuxManager

    if executor is None:
        executor = create_executor(config.tmux, timeout=config.capture.timeout_seconds)
    return TmuxManager(
        executor,
        session_prefix=config.tmux.session_prefix,
        history_lines=config.capture.history_lines,
    )
