"""Make sure the selected model is installed before the first turn."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from .errors import ModelPullFailure, TransportFailure
from .transport import EngineClient

logger = logging.getLogger(__name__)

__all__ = ["ModelResolver", "model_installed"]

ProgressSink = Callable[[str], None]


def model_installed(model_id: str, installed: Iterable[str]) -> bool:
    """Return True when ``model_id`` is installed, allowing an implicit ``:latest`` tag."""

    wanted = {model_id, f"{model_id}:latest"}
    return any(name in wanted for name in installed)


class ModelResolver:
    def __init__(self, client: EngineClient, progress: Optional[ProgressSink] = None) -> None:
        self.client = client
        self.progress = progress

    def ensure_model_available(self, model_id: str) -> bool:
        """Pull ``model_id`` if the engine does not list it.

        Never raises: a failed pull is logged and reported through the
        progress sink, and the chat is allowed to continue. Returns whether
        the model is believed to be available afterwards.
        """

        try:
            installed = self.client.list_models()
        except TransportFailure as exc:
            logger.warning("Catalog query failed (%s); attempting pull of %s", exc, model_id)
        else:
            if model_installed(model_id, installed):
                logger.debug("Model %s already installed", model_id)
                return True

        try:
            self._pull(model_id)
        except ModelPullFailure as exc:
            logger.error("Pull of %s failed: %s", model_id, exc)
            self._emit(f"Model pull failed: {exc}")
            return False
        logger.info("Pulled model %s", model_id)
        return True

    def _pull(self, model_id: str) -> None:
        try:
            for line in self.client.pull_model(model_id):
                self._emit(line)
        except TransportFailure as exc:
            raise ModelPullFailure(str(exc)) from exc

    def _emit(self, line: str) -> None:
        if self.progress is not None and line:
            self.progress(line)
