"""Banner art helpers for the Nomad CLI."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

from nomad_env import get_env

__all__ = ["resolve_logo_lines", "BANNER_TITLE"]

BANNER_TITLE = "NOMAD: CPU-OPTIMIZED INTELLIGENCE"

_DEFAULT_LOGO: Sequence[str] = (
    "╔╗╔┌─┐┌┬┐┌─┐┌┬┐",
    "║║║│ │││││─┤ ││",
    "╝╚╝└─┘┴ ┴┴ ┴─┴┘",
)
_PLAIN_LOGO: Sequence[str] = (
    "==========================================",
    f"  {BANNER_TITLE}",
    "==========================================",
)

_LOGO_PRESETS: Mapping[str, Sequence[str]] = {
    "default": _DEFAULT_LOGO,
    "plain": _PLAIN_LOGO,
}


def _clean_lines(lines: Iterable[str]) -> List[str]:
    cleaned = [line.rstrip("\n\r") for line in lines]
    return cleaned if any(cleaned) else []


def _load_art_file(path: Path) -> List[str]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return []
    return _clean_lines(text.splitlines())


def resolve_logo_lines() -> List[str]:
    """Return the ASCII art lines for the startup banner.

    Precedence:
        1. Environment variable ``NOMAD_HUD_ASCII`` (``\\n``-separated lines)
        2. Environment variable ``NOMAD_HUD_ASCII_FILE`` pointing to a text file
        3. Named preset selected via ``NOMAD_HUD_STYLE``
        4. The plain banner
    """

    inline_override = get_env("NOMAD_HUD_ASCII")
    if inline_override:
        lines = _clean_lines(inline_override.split("\\n"))
        if lines:
            return lines

    file_override = get_env("NOMAD_HUD_ASCII_FILE")
    if file_override:
        art = _load_art_file(Path(file_override).expanduser())
        if art:
            return art

    style = (get_env("NOMAD_HUD_STYLE") or "default").strip().lower()
    preset = _LOGO_PRESETS.get(style)
    if preset:
        return list(preset)

    return list(_PLAIN_LOGO)
