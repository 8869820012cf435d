"""Lifecycle management for the local inference engine process.

The supervisor reuses an engine that is already answering on the configured
address. Otherwise it launches ``<binary> serve`` with the model store pointed
at the Nomad models directory and blocks until the catalog route answers or
the probe budget runs out. Only a process started here is ever terminated.
"""

from __future__ import annotations

import enum
import logging
import os
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from .transport import EngineClient

logger = logging.getLogger(__name__)

__all__ = ["ProbeState", "ReadinessProbe", "ProcessSupervisor"]

DEFAULT_PROBE_ATTEMPTS = 15
DEFAULT_PROBE_INTERVAL = 1.0
DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class ProbeState(enum.Enum):
    UNCHECKED = "unchecked"
    PROBING = "probing"
    READY = "ready"
    FAILED = "failed"


class ReadinessProbe:
    """Bounded-attempt readiness check with a fixed interval between probes."""

    def __init__(
        self,
        probe: Callable[[], bool],
        *,
        max_attempts: int = DEFAULT_PROBE_ATTEMPTS,
        interval: float = DEFAULT_PROBE_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._probe = probe
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep
        self.state = ProbeState.UNCHECKED
        self.attempts = 0

    def step(self) -> ProbeState:
        """Run a single probe and advance the state machine."""

        if self.state in (ProbeState.READY, ProbeState.FAILED):
            return self.state
        self.state = ProbeState.PROBING
        self.attempts += 1
        if self._probe():
            self.state = ProbeState.READY
        elif self.attempts >= self.max_attempts:
            self.state = ProbeState.FAILED
        return self.state

    def run(self) -> ProbeState:
        while self.state not in (ProbeState.READY, ProbeState.FAILED):
            self._sleep(self.interval)
            self.step()
        return self.state

    def fail(self) -> ProbeState:
        self.state = ProbeState.FAILED
        return self.state


PopenFactory = Callable[..., subprocess.Popen]


class ProcessSupervisor:
    """Ensure the engine is reachable and own the process if we started it."""

    def __init__(
        self,
        client: EngineClient,
        binary: Path,
        models_dir: Path,
        *,
        probe_attempts: int = DEFAULT_PROBE_ATTEMPTS,
        probe_interval: float = DEFAULT_PROBE_INTERVAL,
        shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
        popen: PopenFactory = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
        on_spawn: Optional[Callable[[], None]] = None,
    ) -> None:
        self.client = client
        self.binary = Path(binary)
        self.models_dir = Path(models_dir)
        self.shutdown_timeout = shutdown_timeout
        self._popen = popen
        self._on_spawn = on_spawn
        self.probe = ReadinessProbe(
            client.is_reachable,
            max_attempts=probe_attempts,
            interval=probe_interval,
            sleep=sleep,
        )
        self.handle: Optional[subprocess.Popen] = None

    @property
    def state(self) -> ProbeState:
        return self.probe.state

    @property
    def owns_process(self) -> bool:
        return self.handle is not None

    def ensure_running(self) -> Tuple[Optional[subprocess.Popen], bool]:
        """Return ``(handle, ready)``; ``handle`` is set only when this call spawned the engine."""

        if self.client.is_reachable():
            logger.info("Engine already reachable at %s; using it as-is", self.client.endpoint.host)
            self.probe.state = ProbeState.READY
            return None, True

        if self._on_spawn is not None:
            self._on_spawn()
        try:
            self.handle = self._spawn()
        except OSError as exc:
            logger.error("Failed to launch engine binary %s: %s", self.binary, exc)
            self.probe.fail()
            return None, False

        logger.info("Spawned engine pid=%s; probing readiness", getattr(self.handle, "pid", "?"))
        state = self.probe.run()
        if state is ProbeState.READY:
            logger.info("Engine ready after %d probe(s)", self.probe.attempts)
            return self.handle, True

        logger.error("Engine did not become ready after %d probe(s)", self.probe.attempts)
        return self.handle, False

    def shutdown(self) -> None:
        """Terminate the engine if this supervisor started it; otherwise do nothing."""

        process = self.handle
        if process is None:
            return
        self.handle = None
        logger.info("Stopping engine pid=%s", getattr(process, "pid", "?"))
        process.terminate()
        try:
            process.wait(timeout=self.shutdown_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Engine ignored terminate; killing pid=%s", getattr(process, "pid", "?"))
            process.kill()

    def _environment(self) -> Dict[str, str]:
        env = os.environ.copy()
        env["OLLAMA_MODELS"] = str(self.models_dir)
        env["OLLAMA_HOST"] = self.client.endpoint.host
        return env

    def _spawn(self) -> subprocess.Popen:
        args: List[str] = [str(self.binary), "serve"]
        kwargs: Dict[str, object] = {
            "env": self._environment(),
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.DEVNULL,
            "stderr": subprocess.DEVNULL,
        }
        if sys.platform == "win32":
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NO_WINDOW", 0) | getattr(
                subprocess, "CREATE_NEW_PROCESS_GROUP", 0
            )
        else:
            kwargs["start_new_session"] = True
        return self._popen(args, **kwargs)
