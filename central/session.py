"""Turn-based chat session carrying the engine's continuation state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from .errors import TransportFailure
from .transport import EngineClient, GenerateRequest

logger = logging.getLogger(__name__)

__all__ = ["SessionState", "ChatSession", "fold_continuation"]

ChunkCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class SessionState:
    model: str
    persona: str
    system_prompt: str
    continuation: Tuple[int, ...] = ()
    last_response: str = ""
    turns: int = 0


def fold_continuation(current: Tuple[int, ...], incoming: Tuple[int, ...]) -> Tuple[int, ...]:
    """A non-empty incoming state replaces the current one; an empty one keeps it."""

    return tuple(incoming) if incoming else current


class ChatSession:
    """Drive one streaming generate call per user turn.

    The session state only changes when a turn reaches end of stream. A
    ``TransportFailure`` part-way through leaves it exactly as it was, so the
    user can retry the same prompt.
    """

    def __init__(
        self,
        client: EngineClient,
        state: SessionState,
        *,
        on_chunk: Optional[ChunkCallback] = None,
    ) -> None:
        self.client = client
        self.state = state
        self.on_chunk = on_chunk

    def send_turn(self, text: str) -> SessionState:
        request = GenerateRequest(
            model=self.state.model,
            prompt=text,
            system=self.state.system_prompt,
            context=self.state.continuation,
        )
        continuation = self.state.continuation
        acc: List[str] = []

        try:
            for chunk in self.client.generate(request):
                if chunk.text:
                    if self.on_chunk:
                        self.on_chunk(chunk.text)
                    acc.append(chunk.text)
                continuation = fold_continuation(continuation, chunk.context)
        except TransportFailure:
            logger.warning("Turn %d aborted; session state kept", self.state.turns + 1)
            raise

        self.state = replace(
            self.state,
            continuation=continuation,
            last_response="".join(acc),
            turns=self.state.turns + 1,
        )
        logger.debug(
            "Turn %d complete: %d chars, continuation length %d",
            self.state.turns,
            len(self.state.last_response),
            len(continuation),
        )
        return self.state
