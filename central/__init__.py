"""Engine-facing core of Nomad: transport, supervision, model resolution and chat sessions."""

from __future__ import annotations

from .errors import BackendError, ModelPullFailure, NomadError, StartupFailure, TransportFailure
from .extract import extract_code, resolve_filename, save_code
from .resolver import ModelResolver
from .session import ChatSession, SessionState
from .supervisor import ProbeState, ProcessSupervisor, ReadinessProbe
from .transport import BackendEndpoint, EngineClient, GenerateChunk, GenerateRequest
from .version import __version__

__all__ = [
    "__version__",
    "BackendEndpoint",
    "EngineClient",
    "GenerateChunk",
    "GenerateRequest",
    "ProcessSupervisor",
    "ReadinessProbe",
    "ProbeState",
    "ModelResolver",
    "ChatSession",
    "SessionState",
    "extract_code",
    "resolve_filename",
    "save_code",
    "NomadError",
    "StartupFailure",
    "TransportFailure",
    "BackendError",
    "ModelPullFailure",
]
