"""Nomad CLI package."""

from __future__ import annotations

from .args import parse_args
from .app import main as chat_main
from .multitool import main as multitool_main

__all__ = [
    "main",
    "chat_main",
    "parse_args",
]

main = multitool_main
