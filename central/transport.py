"""HTTP transport for the local inference engine (Ollama-compatible API)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .errors import BackendError, TransportFailure

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1:11434"
CATALOG_ROUTE = "/api/tags"
PULL_ROUTE = "/api/pull"
GENERATE_ROUTE = "/api/generate"

__all__ = [
    "DEFAULT_HOST",
    "BackendEndpoint",
    "GenerateRequest",
    "GenerateChunk",
    "EngineClient",
]


@dataclass(frozen=True, slots=True)
class BackendEndpoint:
    """Loopback address of the engine and the routes Nomad talks to."""

    host: str = DEFAULT_HOST
    catalog_route: str = CATALOG_ROUTE
    pull_route: str = PULL_ROUTE
    generate_route: str = GENERATE_ROUTE

    @property
    def base_url(self) -> str:
        host = self.host.strip().rstrip("/")
        if "://" in host:
            return host
        return f"http://{host}"

    def url(self, route: str) -> str:
        return self.base_url + route


@dataclass(frozen=True, slots=True)
class GenerateRequest:
    model: str
    prompt: str
    system: str
    context: Tuple[int, ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "system": self.system,
            "stream": True,
        }
        if self.context:
            payload["context"] = list(self.context)
        return payload


@dataclass(frozen=True, slots=True)
class GenerateChunk:
    """One decoded object from a streaming generate response."""

    text: str
    context: Tuple[int, ...] = field(default=())
    done: bool = False


class EngineClient:
    """Thin wrapper around the engine's catalog, pull and generate routes."""

    def __init__(self, endpoint: Optional[BackendEndpoint] = None, *, probe_timeout: float = 2.0) -> None:
        self.endpoint = endpoint or BackendEndpoint()
        self.probe_timeout = probe_timeout

    def list_models(self, *, timeout: Optional[float] = None) -> List[str]:
        """Return the names of the models installed in the engine."""

        url = self.endpoint.url(self.endpoint.catalog_route)
        req = Request(url, headers={"Accept": "application/json"}, method="GET")
        try:
            with self._open(req, timeout) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                body = resp.read().decode(charset)
        except HTTPError as he:
            raise TransportFailure(_http_error_message(he, suffix=_extract_error_body(he))) from he
        except URLError as ue:
            raise TransportFailure(f"Failed to reach engine at {url}: {ue.reason}") from ue
        except OSError as oe:
            raise TransportFailure(f"Network error talking to engine at {url}: {oe}") from oe

        try:
            obj = json.loads(body)
        except json.JSONDecodeError as exc:
            raise TransportFailure(f"Engine returned non-JSON catalog: {exc}\nBody: {body[:512]}") from exc

        names: List[str] = []
        models = obj.get("models") if isinstance(obj, dict) else None
        for entry in models or []:
            if isinstance(entry, dict) and entry.get("name"):
                names.append(str(entry["name"]))
        return names

    def is_reachable(self) -> bool:
        try:
            self.list_models(timeout=self.probe_timeout)
        except TransportFailure as exc:
            logger.debug("Catalog probe failed: %s", exc)
            return False
        return True

    def pull_model(self, model: str) -> Iterator[str]:
        """Pull ``model`` and yield the engine's progress lines as they arrive.

        The engine closes a finished pull with a ``success`` status; a stream
        that ends without one raises ``TransportFailure``.
        """

        url = self.endpoint.url(self.endpoint.pull_route)
        req = self._post(url, {"model": model, "stream": True})
        finished = False
        for data in self._stream_objects(req, url):
            finished = data.get("status") == "success"
            yield _progress_line(data)
        if not finished:
            raise TransportFailure(f"Pull of {model} ended before completion")

    def generate(self, request: GenerateRequest) -> Iterator[GenerateChunk]:
        """Submit ``request`` and lazily yield decoded response chunks.

        The last chunk carries ``done=True``; a stream that ends without it
        raises ``TransportFailure``.
        """

        url = self.endpoint.url(self.endpoint.generate_route)
        req = self._post(url, request.to_payload())
        completed = False
        for data in self._stream_objects(req, url):
            chunk = GenerateChunk(
                text=str(data.get("response") or ""),
                context=_coerce_context(data.get("context")),
                done=bool(data.get("done", False)),
            )
            completed = completed or chunk.done
            yield chunk
        if not completed:
            raise TransportFailure("Engine stream ended before completion")

    # -----------------
    # Internal utilities
    # -----------------
    def _open(self, req: Request, timeout: Optional[float]):
        if timeout is None:
            return urlopen(req)  # nosec - loopback engine
        return urlopen(req, timeout=timeout)  # nosec - loopback engine

    @staticmethod
    def _post(url: str, payload: Dict[str, Any]) -> Request:
        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json", "Accept": "application/x-ndjson"}
        return Request(url, data=data, headers=headers, method="POST")

    def _stream_objects(self, req: Request, url: str) -> Iterator[Dict[str, Any]]:
        try:
            with self._open(req, None) as resp:
                charset = resp.headers.get_content_charset() or "utf-8"
                while True:
                    line_bytes = resp.readline()
                    if not line_bytes:
                        break
                    line = line_bytes.decode(charset, errors="replace").strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError as exc:
                        raise TransportFailure(f"Engine sent malformed stream data: {line[:200]}") from exc
                    if not isinstance(data, dict):
                        raise TransportFailure(f"Engine sent unexpected stream object: {line[:200]}")
                    if data.get("error"):
                        raise BackendError(str(data["error"]))
                    yield data
        except HTTPError as he:
            raise TransportFailure(_http_error_message(he, suffix=_extract_error_body(he))) from he
        except URLError as ue:
            raise TransportFailure(f"Failed to reach engine at {url}: {ue.reason}") from ue
        except OSError as oe:
            raise TransportFailure(f"Network error talking to engine at {url}: {oe}") from oe


def _coerce_context(value: Any) -> Tuple[int, ...]:
    if not isinstance(value, list):
        return ()
    try:
        return tuple(int(item) for item in value)
    except (TypeError, ValueError):
        return ()


def _progress_line(data: Dict[str, Any]) -> str:
    status = str(data.get("status") or "")
    total = data.get("total")
    completed = data.get("completed")
    if isinstance(total, int) and total > 0 and isinstance(completed, int):
        return f"{status} {completed}/{total}"
    return status


def _extract_error_body(error: HTTPError) -> str:
    try:
        return error.read().decode("utf-8", errors="replace")
    except Exception:
        return ""


def _http_error_message(error: HTTPError, *, suffix: str = "") -> str:
    status = getattr(error, "code", None)
    reason = getattr(error, "reason", "HTTP error")
    message = f"HTTP {status or ''} {reason} from engine"
    if status == 404:
        message += ": model or endpoint not found"
    if suffix:
        message = f"{message}\n{suffix}"
    return message
