"""Error taxonomy shared by the Nomad engine components."""

from __future__ import annotations


class NomadError(RuntimeError):
    """Base exception for Nomad failures."""


class StartupFailure(NomadError):
    """Raised when the inference backend never became reachable."""


class TransportFailure(NomadError):
    """Raised when a request to the backend fails or its stream is unreadable."""


class BackendError(TransportFailure):
    """Raised when the backend answers with an explicit ``error`` object."""


class ModelPullFailure(NomadError):
    """Raised when a model pull does not complete."""


__all__ = [
    "NomadError",
    "StartupFailure",
    "TransportFailure",
    "BackendError",
    "ModelPullFailure",
]
