"""Shared rich consoles for user-facing output."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def notice(message: str) -> None:
    console.print(message, style="cyan", markup=False)


def warn(message: str) -> None:
    console.print(message, style="yellow", markup=False)


def error(message: str) -> None:
    console.print(message, style="bold red", markup=False)


def read_line(prompt: str) -> str:
    """Prompt for one line of input; raises EOFError when stdin is closed."""

    return console.input(Text(prompt))


def write_fragment(piece: str) -> None:
    """Print a streamed fragment as-is, without a trailing newline."""

    console.out(piece, end="", highlight=False)
    console.file.flush()


__all__ = ["console", "err_console", "notice", "warn", "error", "write_fragment", "read_line"]
