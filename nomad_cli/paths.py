"""Shared path utilities for the engine binary, models and workspace."""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path
from typing import Optional

ENGINE_NAME = "ollama"


def _env_path(name: str) -> Optional[Path]:
    value = os.getenv(name)
    if not value:
        return None
    return Path(value).expanduser()


def config_home() -> Path:
    """Return the per-user configuration directory."""

    override = _env_path("NOMAD_CONFIG_HOME")
    if override:
        return override

    home = Path.home()
    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA", home / "AppData" / "Roaming"))
        return base / "Nomad"
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support"
        return base / "Nomad"
    base = Path(os.getenv("XDG_CONFIG_HOME", home / ".config"))
    return base / "nomad"


def install_home() -> Path:
    """Return the root holding ``tools/``, ``models/`` and ``workspace/``."""

    override = _env_path("NOMAD_HOME")
    if override:
        return override

    home = Path.home()
    if sys.platform == "win32":
        base = Path(os.getenv("LOCALAPPDATA", home / "AppData" / "Local"))
        return base / "Nomad"
    if sys.platform == "darwin":
        base = home / "Library" / "Application Support"
        return base / "Nomad" / "Runtime"
    base = Path(os.getenv("XDG_DATA_HOME", home / ".local" / "share"))
    return base / "nomad"


def models_dir() -> Path:
    return install_home() / "models"


def workspace_dir() -> Path:
    return install_home() / "workspace"


def engine_binary() -> Path:
    """Return the engine executable: explicit override, bundled copy, then PATH."""

    override = _env_path("NOMAD_ENGINE_BIN")
    if override:
        return override

    exe = f"{ENGINE_NAME}.exe" if sys.platform == "win32" else ENGINE_NAME
    bundled = install_home() / "tools" / exe
    if bundled.exists():
        return bundled

    found = shutil.which(ENGINE_NAME)
    if found:
        return Path(found)
    return bundled


def ensure_layout() -> tuple[Path, Path]:
    """Create the models and workspace directories if they are missing."""

    models = models_dir()
    workspace = workspace_dir()
    models.mkdir(parents=True, exist_ok=True)
    workspace.mkdir(parents=True, exist_ok=True)
    return models, workspace


__all__ = [
    "config_home",
    "install_home",
    "models_dir",
    "workspace_dir",
    "engine_binary",
    "ensure_layout",
]
