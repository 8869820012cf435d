"""Multitool entrypoint: ``nomad`` defaults to the chat client and adds a few
utility subcommands around it."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from central.config import load_runtime_config
from central.errors import TransportFailure
from central.resolver import model_installed
from central.transport import BackendEndpoint, EngineClient
from central.version import __version__

from .app import main as chat_main
from .console import console, warn
from .paths import config_home
from .registry import MODEL_REGISTRY


def _print_root_help() -> None:
    console.print("Nomad CLI", style="bold magenta", end=" ")
    console.print("- local coding assistant\n")
    console.print(
        "Usage:\n"
        "  nomad [chat options]\n"
        "  nomad chat [options]\n"
        "  nomad models [--host HOST]\n"
        "  nomad version\n"
        "\n"
        "Common commands:\n"
        "  chat               launch the interactive chat client (default)\n"
        "  models             list registry models and whether they are installed\n"
        "  version            print the current version and exit\n"
        "\n"
        "Run `nomad chat --help` for chat options.",
        markup=False,
    )


def _run_models(argv: Sequence[str]) -> int:
    host: Optional[str] = None
    args = list(argv)
    if args[:1] == ["--host"] and len(args) > 1:
        host = args[1]
    elif args:
        warn(f"Unknown arguments for `nomad models`: {' '.join(args)}")
        return 1

    cfg = load_runtime_config(config_root=config_home())
    client = EngineClient(BackendEndpoint(host=host or cfg.engine.host), probe_timeout=cfg.engine.probe_timeout)
    try:
        installed = client.list_models(timeout=cfg.engine.probe_timeout)
    except TransportFailure:
        installed = None

    for key, model in MODEL_REGISTRY.items():
        if installed is None:
            marker = "?"
        else:
            marker = "*" if model_installed(model.model_id, installed) else " "
        console.print(
            f"{marker} {key}. {model.model_id:<20} | {model.size:<6} | {model.description} ({model.efficiency})",
            markup=False,
        )
    if installed is None:
        warn("Engine offline: install state unknown.")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entrypoint for the ``nomad`` console script."""

    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        return chat_main([])

    first = args[0]
    if first in {"-h", "--help", "help"}:
        _print_root_help()
        return 0

    if first in {"-V", "--version", "version"}:
        console.print(__version__)
        return 0

    if first == "chat":
        return chat_main(args[1:])

    if first == "models":
        return _run_models(args[1:])

    # Compatibility: bare chat flags without a subcommand.
    return chat_main(args)
