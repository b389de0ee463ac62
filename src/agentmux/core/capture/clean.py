"""
Captured pane text cleaning.

``tmux capture-pane`` output still carries whatever the agent drew:
colour codes, cursor movement, carriage-return progress bars, and a tail
of blank rows below the prompt.  These helpers reduce it to the text an
operator would read, and count its lines for capture autotuning.
"""

from __future__ import annotations

import re

# CSI, OSC, charset designators, other two-byte ESC sequences
_ANSI_RE = re.compile(
    r"\x1b\[[0-9;?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07]*(?:\x07|\x1b\\)"
    r"|\x1b[()][A-Z0-9]"
    r"|\x1b[ -/]*[@-~]"
)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences."""
    return _ANSI_RE.sub("", text)


def clean_capture(text: str) -> str:
    """
    Return *text* as an operator would see it.

    Lines overwritten with ``\\r`` keep only their last segment, escape
    sequences are removed, trailing whitespace is stripped per line, and
    trailing blank lines are dropped.
    """
    if not text:
        return ""
    rebuilt: list[str] = []
    for line in text.replace("\r\n", "\n").split("\n"):
        if "\r" in line:
            line = line.split("\r")[-1]
        rebuilt.append(strip_ansi(line).rstrip())
    while rebuilt and not rebuilt[-1]:
        rebuilt.pop()
    return "\n".join(rebuilt)


def count_lines(text: str) -> int:
    """Number of lines in cleaned capture *text* (0 for empty)."""
    cleaned = clean_capture(text)
    return len(cleaned.split("\n")) if cleaned else 0


def tail_lines(text: str, limit: int) -> str:
    """Last *limit* lines of cleaned *text*."""
    if limit <= 0:
        return ""
    cleaned = clean_capture(text)
    if not cleaned:
        return ""
    return "\n".join(cleaned.split("\n")[-limit:])
