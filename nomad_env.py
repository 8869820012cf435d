"""Environment helpers for Nomad with an on-disk env file fallback."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

_ENV_FILE_CACHE: Dict[str, str] | None = None


def _default_env_roots() -> List[Path]:
    roots: List[Path] = []
    env_root = os.getenv("NOMAD_CONFIG_HOME")
    if env_root:
        roots.append(Path(env_root).expanduser())
    home = Path.home()
    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA", home / "AppData" / "Roaming"))
        roots.extend([base / "Nomad", base / "nomad"])
    elif sys.platform == "darwin":
        base = home / "Library/Application Support"
        roots.extend([base / "Nomad", base / "nomad"])
    else:
        xdg = Path(os.getenv("XDG_CONFIG_HOME", home / ".config"))
        roots.extend([xdg / "nomad", home / ".config/nomad"])
    deduped: List[Path] = []
    for root in roots:
        expanded = root.expanduser()
        if expanded not in deduped:
            deduped.append(expanded)
    return deduped


def _parse_env_lines(text: str) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        values[key.strip()] = value.strip()
    return values


def _load_env_file() -> Dict[str, str]:
    """Load key/value pairs from ``NOMAD_ENV_FILE`` or ``nomad.env`` in the config home."""

    global _ENV_FILE_CACHE
    if _ENV_FILE_CACHE is not None:
        return _ENV_FILE_CACHE

    values: Dict[str, str] = {}
    file_hint = os.getenv("NOMAD_ENV_FILE")
    if file_hint:
        path = Path(file_hint).expanduser()
        if path.is_file():
            values.update(_parse_env_lines(path.read_text(encoding="utf-8")))

    for root in _default_env_roots():
        default_file = root / "nomad.env"
        if default_file.is_file():
            for key, value in _parse_env_lines(default_file.read_text(encoding="utf-8")).items():
                values.setdefault(key, value)

    _ENV_FILE_CACHE = values
    return values


def get_env(name: str) -> Optional[str]:
    """Return an environment value, falling back to the env file."""

    value = os.getenv(name)
    if value is None:
        value = _load_env_file().get(name)
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def get_int(name: str, default: int) -> int:
    value = get_env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_float(name: str, default: float) -> float:
    value = get_env(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default
