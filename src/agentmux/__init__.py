"""
agentmux: transport-transparent tmux session bridge for AI coding agents.

agentmux keeps interactive coding-agent CLIs (Claude, Codex, Gemini,
OpenCode, ...) running inside tmux windows and lets a chat bridge find,
start, and read them again on every request, whether tmux runs on this
host or on a remote machine reached over ssh.

Package layout (src/agentmux/):
  core/transport/  command executors (local, ssh) and remote target parsing
  core/naming/     stable, tmux-safe window identities
  core/capture/    capture-buffer tuning and pane text cleaning
  core/state/      read-only project/instance snapshots
  core/tmux/       tmux command layer over an executor
  core/session/    session manager (ensure + capture pipeline)
  cli/             Click CLI entry point
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
