"""Coloured messages for the user's console."""

from __future__ import annotations

import sys

_RESET = "\x1b[0m"
_CYAN_BOLD_ITALIC = "\x1b[1;3;36m"
_RED_BOLD_ITALIC = "\x1b[1;3;31m"


def _paint(style: str, text: str) -> str:
    return f"{style}{text}{_RESET}"


def info(message: str, data: str) -> None:
    """Print an informational message and its data to standard output."""
    print(
        f"{_paint(_CYAN_BOLD_ITALIC, message)} \n {_paint(_CYAN_BOLD_ITALIC, data)} ",
        file=sys.stdout,
    )


def error(message: str, data: str) -> None:
    """Print an error message and its data to standard error."""
    print(
        f"{_paint(_CYAN_BOLD_ITALIC, message)} \n {_paint(_RED_BOLD_ITALIC, data)} ",
        file=sys.stderr,
    )