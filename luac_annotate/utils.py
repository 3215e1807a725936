"""Small helpers shared by the CLI and logging setup."""

from __future__ import annotations

_COLOR_CODES = {
    "black": "30",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "magenta": "35",
    "cyan": "36",
}


def colorize_text(text: str, color: str, bold: bool = False) -> str:
    """Return *text* wrapped in ANSI color codes."""
    code = _COLOR_CODES.get(color, "0")
    style = "1;" if bold else ""
    return f"\033[{style}{code}m{text}\033[0m"


def split_lines(text: str) -> list[str]:
    """Split *text* into lines without their terminators.

    A trailing newline does not produce an empty final line, so joining the
    result with ``"\\n"`` and appending one newline restores the text.
    """

    if not text:
        return []
    return text.split("\n") if not text.endswith("\n") else text[:-1].split("\n")
