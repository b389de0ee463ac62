"""
Structured logging for agentmux.

Every module logs through structlog with snake_case event names and
key/value context::

    import structlog
    logger = structlog.get_logger()

    log = logger.bind(project="demo", agent="claude", instance="claude-2")
    log.info("agent_window_ready", session="agent-bridge", window="demo-claude-2")

``configure_logging()`` routes structlog and stdlib records through one
stderr handler, rendered for a terminal or as JSON lines.  tmux command
lines and their stderr can carry whole pasted prompts, so those fields are
cut down before rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

# Fields that may hold a full tmux command line or its output
_LONG_FIELDS = ("command", "stderr", "error")
MAX_FIELD_CHARS = 300


def truncate_long_fields(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Shorten command/stderr/error values to MAX_FIELD_CHARS."""
    for key in _LONG_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_FIELD_CHARS:
            event_dict[key] = f"{value[:MAX_FIELD_CHARS]}... [{len(value)} chars]"
    return event_dict


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        truncate_long_fields,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    Unknown level names fall back to INFO.  Calling again reuses the
    installed handler and only swaps its renderer, so the CLI can switch
    to JSON output after an earlier default setup.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
        foreign_pre_chain=pre_chain,
    )

    root = logging.getLogger()
    ours = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler)
        and isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
    ]
    if not ours:
        handler = logging.StreamHandler(sys.stderr)
        root.addHandler(handler)
        ours = [handler]
    for h in ours:
        h.setFormatter(formatter)

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("asyncio").setLevel(logging.WARNING)
