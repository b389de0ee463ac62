"""
Remote target resolution.

Turns the user-supplied ssh address (``user@host``, ``host:2222``,
``[fe80::1]``...) into a RemoteTarget.  The ``host:port`` shorthand is
ambiguous with IPv6 literals, so a port is only split off when the string
holds exactly one colon followed by 1-5 digits in the valid port range.
Anything else is kept whole as the host spec: no port beats a wrong port.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from agentmux.core.constants import MAX_PORT, MIN_PORT
from agentmux.core.exceptions import ConfigError

_HOST_PORT_RE = re.compile(r"^(.+):(\d{1,5})$")


@dataclass(frozen=True)
class RemoteTarget:
    """Where the ssh executor connects. Immutable once resolved."""

    host_spec: str
    port: int | None = None
    identity_file: str | None = None


def resolve_remote_target(
    raw_target: str,
    explicit_port: int | None = None,
    identity_file: str | None = None,
) -> RemoteTarget:
    """
    Parse *raw_target* into a RemoteTarget.

    An explicit port always wins and the raw string is then used verbatim
    (after trimming).  Raises ConfigError for an empty target.
    """
    trimmed = (raw_target or "").strip()
    if not trimmed:
        raise ConfigError("tmux ssh target is empty")

    identity = identity_file.strip() if identity_file and identity_file.strip() else None

    if explicit_port is not None:
        return RemoteTarget(host_spec=trimmed, port=explicit_port, identity_file=identity)

    if trimmed.count(":") == 1:
        match = _HOST_PORT_RE.match(trimmed)
        if match:
            port = int(match.group(2))
            if MIN_PORT <= port <= MAX_PORT:
                return RemoteTarget(host_spec=match.group(1), port=port, identity_file=identity)

    return RemoteTarget(host_spec=trimmed, identity_file=identity)
