"""Unit tests for ssh target parsing."""

from __future__ import annotations

import pytest

from agentmux.core.exceptions import ConfigError
from agentmux.core.transport.target import RemoteTarget, resolve_remote_target


class TestResolveRemoteTarget:
    def test_plain_host(self) -> None:
        assert resolve_remote_target("host") == RemoteTarget("host", None)

    def test_user_at_host(self) -> None:
        assert resolve_remote_target("user@host") == RemoteTarget("user@host", None)

    def test_inline_port(self) -> None:
        assert resolve_remote_target("host:22") == RemoteTarget("host", 22)

    def test_inline_port_with_user(self) -> None:
        assert resolve_remote_target("user@host:2222") == RemoteTarget("user@host", 2222)

    def test_out_of_range_port_not_parsed(self) -> None:
        assert resolve_remote_target("host:99999") == RemoteTarget("host:99999", None)

    def test_port_zero_not_parsed(self) -> None:
        assert resolve_remote_target("host:0") == RemoteTarget("host:0", None)

    def test_six_digit_suffix_not_parsed(self) -> None:
        assert resolve_remote_target("host:100000") == RemoteTarget("host:100000", None)

    def test_non_numeric_suffix_not_parsed(self) -> None:
        assert resolve_remote_target("host:ssh") == RemoteTarget("host:ssh", None)

    def test_two_colons_left_alone(self) -> None:
        assert resolve_remote_target("a:b:22") == RemoteTarget("a:b:22", None)

    def test_ipv6_literal_left_alone(self) -> None:
        assert resolve_remote_target("fe80::1") == RemoteTarget("fe80::1", None)

    def test_missing_host_before_port_left_alone(self) -> None:
        assert resolve_remote_target(":22") == RemoteTarget(":22", None)

    def test_explicit_port_wins_and_keeps_raw(self) -> None:
        assert resolve_remote_target("user@host:2222", 2201) == RemoteTarget("user@host:2222", 2201)

    def test_whitespace_trimmed(self) -> None:
        assert resolve_remote_target("  host:22 \n") == RemoteTarget("host", 22)

    def test_identity_carried(self) -> None:
        target = resolve_remote_target("host", identity_file=" ~/.ssh/id_ed25519 ")
        assert target.identity_file == "~/.ssh/id_ed25519"

    def test_blank_identity_dropped(self) -> None:
        assert resolve_remote_target("host", identity_file="   ").identity_file is None

    @pytest.mark.parametrize("raw", ["", "   ", "\n\t"])
    def test_empty_target_rejected(self, raw: str) -> None:
        with pytest.raises(ConfigError, match="empty"):
            resolve_remote_target(raw)

    def test_target_is_immutable(self) -> None:
        target = resolve_remote_target("host:22")
        with pytest.raises(AttributeError):
            target.port = 23  # type: ignore[misc]
