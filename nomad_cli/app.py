"""Interactive Nomad chat client.

Startup order: make sure the engine answers (spawning it when needed), pick a
model and make sure it is installed, pick a persona, then loop over user
turns until ``exit`` or end of input. The engine is stopped on the way out if
this process started it.
"""

from __future__ import annotations

import argparse
import logging
import re
from pathlib import Path
from typing import Callable, Optional, Sequence

from central.config import RuntimeConfig, load_runtime_config
from central.errors import StartupFailure, TransportFailure
from central.extract import extract_code, resolve_filename, save_code
from central.resolver import ModelResolver
from central.session import ChatSession, SessionState
from central.supervisor import ProcessSupervisor
from central.transport import BackendEndpoint, EngineClient

from .args import parse_args
from .console import console, error, notice, read_line, warn, write_fragment
from .hud import BANNER_TITLE, resolve_logo_lines
from .logs import init_logging
from .paths import config_home, engine_binary, ensure_layout
from .registry import (
    MODEL_REGISTRY,
    PERSONA_REGISTRY,
    ModelDescriptor,
    Persona,
    find_model,
    find_persona,
    select_model,
    select_persona,
)

logger = logging.getLogger(__name__)

Reader = Callable[[str], str]

EXIT_COMMANDS = {"exit", "quit"}
PROGRESS_COUNT_RE = re.compile(r"\s\d+/\d+$")

HELP_TEXT = (
    "Commands:\n"
    "  save <name>   save the code block from the last answer to the workspace\n"
    "  help          show this message\n"
    "  exit          leave Nomad (also: quit, Ctrl-D)\n"
    "Anything else is sent to the model."
)


def _ask(read: Reader, prompt: str) -> str:
    try:
        return read(prompt)
    except EOFError:
        return ""


def _print_banner() -> None:
    console.print()
    for line in resolve_logo_lines():
        console.print(line, style="magenta", markup=False)
    console.print("==========================================")
    console.print(BANNER_TITLE, style="bold")
    console.print("==========================================")


def _print_model_menu() -> None:
    for key, model in MODEL_REGISTRY.items():
        console.print(f"{key}. {model.model_id:<20} | {model.size:<6} | {model.efficiency}", markup=False)


def choose_model(preset: Optional[str], read: Reader) -> ModelDescriptor:
    if preset:
        found = find_model(preset)
        if found is None:
            found = select_model(None)
            warn(f"Unknown model {preset!r}; using {found.model_id}")
        return found
    _print_model_menu()
    return select_model(_ask(read, "\nSelect Brain [Default 1]: "))


def choose_persona(preset: Optional[str], read: Reader) -> Persona:
    if preset:
        found = find_persona(preset)
        if found is None:
            found = select_persona(None)
            warn(f"Unknown persona {preset!r}; using {found.name}")
        return found
    options = " | ".join(f"{key}.{persona.name}" for key, persona in PERSONA_REGISTRY.items())
    console.print(f"\nSelect Stack: {options}", markup=False)
    return select_persona(_ask(read, "Choice: "))


def _make_pull_printer(model: ModelDescriptor):
    state = {"announced": False, "inline": False}

    def emit(line: str) -> None:
        if not state["announced"]:
            notice(f"\nInitializing CPU-Optimized Brain: {model.model_id} ({model.size})")
            state["announced"] = True
        if PROGRESS_COUNT_RE.search(line):
            console.out(f"\r{line}", end="", highlight=False)
            state["inline"] = True
            return
        if state["inline"]:
            console.out("")
            state["inline"] = False
        console.out(line, highlight=False)

    return emit


def start_engine(supervisor: ProcessSupervisor) -> None:
    """Block until the engine answers; raise ``StartupFailure`` otherwise."""

    _handle, ready = supervisor.ensure_running()
    if not ready:
        raise StartupFailure(
            f"Inference engine at {supervisor.client.endpoint.host} did not become ready "
            f"after {supervisor.probe.attempts} probe(s) (binary: {supervisor.binary})"
        )


def handle_save(argument: str, *, last_response: str, persona: Persona, workspace: Path) -> Optional[Path]:
    """Save the code block from ``last_response``; returns the written path or None."""

    try:
        filename = resolve_filename(argument, persona.extension)
    except ValueError:
        warn("Usage: save <name>")
        return None

    code = extract_code(last_response)
    if code is None:
        notice("No code block found in the last response; nothing saved.")
        return None

    try:
        path = save_code(workspace, filename, code)
    except (ValueError, OSError) as exc:
        logger.error("Save to %s failed: %s", filename, exc)
        error(f"Save failed: {exc}")
        return None
    notice(f"Saved to workspace/{filename}")
    return path


def run_chat_loop(session: ChatSession, persona: Persona, workspace: Path, *, read: Reader) -> int:
    """Read user input until ``exit`` or end of input; returns the number of completed turns."""

    while True:
        try:
            raw = read(f"\nNomad [{persona.name}] > ")
        except EOFError:
            console.print()
            break
        except KeyboardInterrupt:
            console.print()
            break

        text = raw.strip()
        if not text:
            continue
        lowered = text.lower()
        if lowered in EXIT_COMMANDS:
            break
        if lowered == "help":
            console.print(HELP_TEXT, markup=False)
            continue
        if text == "save" or text.startswith("save "):
            handle_save(
                text[len("save"):].strip(),
                last_response=session.state.last_response,
                persona=persona,
                workspace=workspace,
            )
            continue

        notice("Processing...")
        console.out("\nAI: ", end="", highlight=False)
        try:
            session.send_turn(raw)
        except TransportFailure as exc:
            console.print()
            logger.error("Turn failed: %s", exc)
            error(f"Engine unreachable: {exc}")
            continue
        except KeyboardInterrupt:
            console.print()
            warn("[interrupted] previous conversation state kept")
            continue
        console.print()

    return session.state.turns


def build_supervisor(client: EngineClient, cfg: RuntimeConfig, models: Path) -> ProcessSupervisor:
    return ProcessSupervisor(
        client,
        engine_binary(),
        models,
        probe_attempts=cfg.engine.probe_attempts,
        probe_interval=cfg.engine.probe_interval,
        shutdown_timeout=cfg.engine.shutdown_timeout,
        on_spawn=lambda: notice("Starting CPU Inference Engine..."),
    )


def run(args: argparse.Namespace, *, read: Optional[Reader] = None) -> int:
    read = read or read_line
    root = config_home()
    log_path = init_logging(root / "logs", verbose=bool(args.verbose))
    cfg = load_runtime_config(Path(args.config).expanduser() if args.config else None, config_root=root)
    host = args.host or cfg.engine.host
    models, workspace = ensure_layout()
    logger.info("Nomad starting: engine=%s models=%s workspace=%s log=%s", host, models, workspace, log_path)

    client = EngineClient(BackendEndpoint(host=host), probe_timeout=cfg.engine.probe_timeout)
    supervisor = build_supervisor(client, cfg, models)

    _print_banner()
    try:
        try:
            start_engine(supervisor)
        except StartupFailure as exc:
            logger.error("%s", exc)
            error(f"Startup failed: {exc}")
            return 1

        model = choose_model(args.model or cfg.defaults.model, read)
        resolver = ModelResolver(client, progress=_make_pull_printer(model))
        resolver.ensure_model_available(model.model_id)

        persona = choose_persona(args.persona or cfg.defaults.persona, read)
        state = SessionState(
            model=model.model_id,
            persona=persona.name,
            system_prompt=persona.system_prompt(),
        )
        session = ChatSession(client, state, on_chunk=write_fragment)
        notice(f"\nReady! Model: {model.model_id} | Mode: {persona.name}")

        turns = run_chat_loop(session, persona, workspace, read=read)
        logger.info("Session closed after %d turn(s)", turns)
        return 0
    except KeyboardInterrupt:
        console.print()
        return 130
    finally:
        supervisor.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(parse_args(argv))


__all__ = [
    "main",
    "run",
    "run_chat_loop",
    "handle_save",
    "start_engine",
    "choose_model",
    "choose_persona",
]
