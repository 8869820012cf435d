"""Argument parsing for ``nomad chat``."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nomad chat",
        description="Interactive coding assistant backed by a local inference engine.",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Model menu key or model id (skips the model menu).",
    )
    parser.add_argument(
        "--persona",
        default=None,
        help="Persona menu key or language name (skips the stack menu).",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Engine address as host:port (default: NOMAD_ENGINE_HOST or 127.0.0.1:11434).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a nomad.json config file.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Also print log records to stderr.",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(list(argv) if argv is not None else None)


__all__ = ["build_parser", "parse_args"]
