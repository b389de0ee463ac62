"""agentmux configuration: Pydantic model, load, save, and env overlays."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from agentmux.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_SHARED_SESSION_NAME,
    MAX_HISTORY_LINES,
    MAX_PORT,
    MAX_REDRAW_TAIL_LINES,
    MIN_HISTORY_LINES,
    MIN_PORT,
    MIN_REDRAW_TAIL_LINES,
    STATE_FILENAME,
    _default_data_dir,
)
from agentmux.core.exceptions import ConfigError, ConfigNotFoundError


def agentmux_dir() -> Path:
    """
    Return the agentmux data directory, creating it if needed.

    macOS : ~/Library/Application Support/agentmux
    Linux : ~/.config/agentmux  (or $XDG_CONFIG_HOME/agentmux)
    Other : ~/.agentmux
    """
    d = _default_data_dir()
    d.mkdir(mode=0o700, parents=True, exist_ok=True)
    return d


def _int_in_range(v: Any, lo: int, hi: int) -> int | None:
    """Coerce *v* to an int within [lo, hi]; anything else becomes None."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, str):
        v = v.strip()
        if not v.isdigit():
            return None
        v = int(v)
    if isinstance(v, float):
        if not v.is_integer():
            return None
        v = int(v)
    if not isinstance(v, int) or not (lo <= v <= hi):
        return None
    return v


# ---------------------------------------------------------------------------
# Sub-models
# ---------------------------------------------------------------------------


class TmuxConfig(BaseModel):
    """Process-wide tmux placement. Loaded once, never mutated."""

    model_config = {"frozen": True}

    session_prefix: str = ""
    shared_session_name: str | None = DEFAULT_SHARED_SESSION_NAME
    transport: Literal["local", "ssh"] = "local"
    ssh_target: str | None = None
    ssh_port: int | None = None
    ssh_identity: str | None = None

    @field_validator("ssh_port", mode="before")
    @classmethod
    def drop_invalid_port(cls, v: Any) -> int | None:
        # The port is advisory: out-of-range values fall back to ssh's default
        return _int_in_range(v, MIN_PORT, MAX_PORT)

    @field_validator("transport", mode="before")
    @classmethod
    def normalize_transport(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("ssh_target", "ssh_identity", "shared_session_name", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def shared_session(self) -> str:
        """Full name of the shared session that hosts windows of many projects."""
        return f"{self.session_prefix}{self.shared_session_name or DEFAULT_SHARED_SESSION_NAME}"


class CaptureSettings(BaseModel):
    """Pinned capture values. Out-of-range values are treated as unset."""

    history_lines: int | None = None
    redraw_tail_lines: int | None = None
    timeout_seconds: float | None = None

    @field_validator("history_lines", mode="before")
    @classmethod
    def validate_history(cls, v: Any) -> int | None:
        return _int_in_range(v, MIN_HISTORY_LINES, MAX_HISTORY_LINES)

    @field_validator("redraw_tail_lines", mode="before")
    @classmethod
    def validate_tail(cls, v: Any) -> int | None:
        return _int_in_range(v, MIN_REDRAW_TAIL_LINES, MAX_REDRAW_TAIL_LINES)

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()


class StateConfig(BaseModel):
    path: str = ""  # empty → use default


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class AgentMuxConfig(BaseModel):
    """Root agentmux configuration model."""

    config_version: int = 1
    tmux: TmuxConfig = Field(default_factory=TmuxConfig)
    capture: CaptureSettings = Field(default_factory=CaptureSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    state: StateConfig = Field(default_factory=StateConfig)

    _config_path: Path | None = None

    @property
    def state_path(self) -> Path:
        if self.state.path:
            return Path(self.state.path).expanduser()
        return _default_data_dir() / STATE_FILENAME

    @property
    def config_path(self) -> Path | None:
        return self._config_path


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("AGENTMUX_CONFIG"):
        return Path(env_path)
    return _default_data_dir() / CONFIG_FILENAME


def load_config(path: Path | str | None = None, *, allow_missing: bool = False) -> AgentMuxConfig:
    """
    Load AgentMuxConfig from TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (AGENTMUX_*)
      2. Config file (platform data dir / config.toml)
      3. Model defaults

    With *allow_missing*, a missing file yields defaults plus env overlays
    instead of ConfigNotFoundError.
    """
    import tomllib

    cfg_path = Path(path) if path is not None else _config_file_path()

    data: dict[str, Any] = {}
    if cfg_path.exists():
        try:
            with open(cfg_path, "rb") as f:
                data = tomllib.load(f)
        except Exception as exc:
            raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc
    elif not allow_missing:
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    _apply_env_overrides(data)

    try:
        config = AgentMuxConfig.model_validate(data)
    except Exception as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc

    config._config_path = cfg_path
    return config


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay AGENTMUX_* environment variables onto parsed TOML."""
    tmux_vars = {
        "AGENTMUX_TMUX_SESSION_PREFIX": "session_prefix",
        "AGENTMUX_TMUX_SHARED_SESSION_NAME": "shared_session_name",
        "AGENTMUX_TMUX_TRANSPORT": "transport",
        "AGENTMUX_TMUX_SSH_TARGET": "ssh_target",
        "AGENTMUX_TMUX_SSH_PORT": "ssh_port",
        "AGENTMUX_TMUX_SSH_IDENTITY": "ssh_identity",
    }
    for env_name, key in tmux_vars.items():
        if value := os.environ.get(env_name, ""):
            data.setdefault("tmux", {})[key] = value

    if history := os.environ.get("AGENTMUX_CAPTURE_HISTORY_LINES", ""):
        data.setdefault("capture", {})["history_lines"] = history
    if tail := os.environ.get("AGENTMUX_CAPTURE_REDRAW_TAIL_LINES", ""):
        data.setdefault("capture", {})["redraw_tail_lines"] = tail

    if level := os.environ.get("AGENTMUX_LOG_LEVEL", ""):
        data.setdefault("logging", {})["level"] = level
    if state_path := os.environ.get("AGENTMUX_STATE_PATH", ""):
        data.setdefault("state", {})["path"] = state_path


def save_config(config_data: dict[str, Any], path: Path | None = None) -> Path:
    """Write config dict to TOML file with secure permissions (0600)."""
    import tomli_w

    cfg_path = path or _config_file_path()
    cfg_path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    config_data.setdefault("config_version", 1)

    # Write atomically
    tmp_path = cfg_path.with_suffix(".tmp")
    try:
        with open(tmp_path, "wb") as f:
            tomli_w.dump(config_data, f)
        tmp_path.rename(cfg_path)
    except Exception as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Cannot write config to {cfg_path}: {exc}") from exc

    cfg_path.chmod(0o600)
    return cfg_path


def save_capture_tuning(history_lines: int, redraw_tail_lines: int, path: Path | None = None) -> Path:
    """Pin capture values into the config file, preserving every other key."""
    import tomllib

    cfg_path = path or _config_file_path()
    data: dict[str, Any] = {}
    if cfg_path.exists():
        try:
            with open(cfg_path, "rb") as f:
                data = tomllib.load(f)
        except Exception as exc:
            raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    capture = data.setdefault("capture", {})
    capture["history_lines"] = history_lines
    capture["redraw_tail_lines"] = redraw_tail_lines
    return save_config(data, cfg_path)
