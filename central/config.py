"""Runtime configuration: dataclass defaults, JSON file, then environment."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from nomad_env import get_env, get_float, get_int

from .supervisor import DEFAULT_PROBE_ATTEMPTS, DEFAULT_PROBE_INTERVAL, DEFAULT_SHUTDOWN_TIMEOUT
from .transport import DEFAULT_HOST

logger = logging.getLogger(__name__)

__all__ = ["EngineConfig", "DefaultsConfig", "RuntimeConfig", "load_runtime_config"]

CONFIG_FILENAME = "nomad.json"


@dataclass(slots=True)
class EngineConfig:
    host: str = DEFAULT_HOST
    probe_attempts: int = DEFAULT_PROBE_ATTEMPTS
    probe_interval: float = DEFAULT_PROBE_INTERVAL
    probe_timeout: float = 2.0
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT


@dataclass(slots=True)
class DefaultsConfig:
    model: Optional[str] = None
    persona: Optional[str] = None


@dataclass(slots=True)
class RuntimeConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    source: Optional[Path] = None


def _get(data: Any, key: str, default: Any) -> Any:
    return data.get(key, default) if isinstance(data, dict) else default


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def load_runtime_config(path: Optional[Path] = None, *, config_root: Optional[Path] = None) -> RuntimeConfig:
    """Build the runtime config from ``path`` (or ``NOMAD_CONFIG``) plus env overrides."""

    if path is None:
        hint = get_env("NOMAD_CONFIG")
        if hint:
            path = Path(hint).expanduser()
        elif config_root is not None:
            path = config_root / CONFIG_FILENAME

    raw = _load_json(path) if path is not None else {}
    engine_raw = _get(raw, "engine", {})
    defaults_raw = _get(raw, "defaults", {})
    base = EngineConfig()

    engine = EngineConfig(
        host=str(_get(engine_raw, "host", base.host)),
        probe_attempts=_as_int(_get(engine_raw, "probe_attempts", base.probe_attempts), base.probe_attempts),
        probe_interval=_as_float(_get(engine_raw, "probe_interval", base.probe_interval), base.probe_interval),
        probe_timeout=_as_float(_get(engine_raw, "probe_timeout", base.probe_timeout), base.probe_timeout),
        shutdown_timeout=_as_float(
            _get(engine_raw, "shutdown_timeout", base.shutdown_timeout), base.shutdown_timeout
        ),
    )
    engine.host = get_env("NOMAD_ENGINE_HOST") or engine.host
    engine.probe_attempts = max(1, get_int("NOMAD_PROBE_ATTEMPTS", engine.probe_attempts))
    engine.probe_interval = max(0.0, get_float("NOMAD_PROBE_INTERVAL", engine.probe_interval))
    engine.probe_timeout = get_float("NOMAD_PROBE_TIMEOUT", engine.probe_timeout)

    defaults = DefaultsConfig(
        model=_get(defaults_raw, "model", None),
        persona=_get(defaults_raw, "persona", None),
    )
    return RuntimeConfig(engine=engine, defaults=defaults, source=path if raw else None)
