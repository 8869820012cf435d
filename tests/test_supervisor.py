"""Coverage for engine process supervision and the readiness state machine."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any, Dict, Iterable, List

import pytest

from central.supervisor import ProbeState, ProcessSupervisor, ReadinessProbe
from central.transport import BackendEndpoint


class _ScriptedClient:
    """Client whose reachability follows a script, then repeats the last answer."""

    def __init__(self, answers: Iterable[bool]) -> None:
        self._answers: List[bool] = list(answers)
        self.endpoint = BackendEndpoint(host="127.0.0.1:11434")
        self.calls = 0

    def is_reachable(self) -> bool:
        self.calls += 1
        if len(self._answers) > 1:
            return self._answers.pop(0)
        return self._answers[0]


class _FakeProcess:
    pid = 4242

    def __init__(self, *, hang: bool = False) -> None:
        self.terminate_calls = 0
        self.kill_calls = 0
        self._hang = hang

    def terminate(self) -> None:
        self.terminate_calls += 1

    def wait(self, timeout: float | None = None) -> int:
        if self._hang:
            raise subprocess.TimeoutExpired(cmd="ollama serve", timeout=timeout or 0)
        return 0

    def kill(self) -> None:
        self.kill_calls += 1


class _PopenRecorder:
    def __init__(self, process: Any = None, error: Exception | None = None) -> None:
        self.process = process or _FakeProcess()
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, args: List[str], **kwargs: Any) -> Any:
        self.calls.append({"args": args, **kwargs})
        if self.error is not None:
            raise self.error
        return self.process


def _supervisor(client: _ScriptedClient, popen: _PopenRecorder, sleeps: List[float], **kwargs: Any) -> ProcessSupervisor:
    return ProcessSupervisor(
        client,  # type: ignore[arg-type]
        Path("/opt/nomad/tools/ollama"),
        Path("/opt/nomad/models"),
        popen=popen,
        sleep=sleeps.append,
        **kwargs,
    )


def test_probe_exhausts_exact_attempt_budget() -> None:
    calls: List[int] = []
    sleeps: List[float] = []
    probe = ReadinessProbe(lambda: calls.append(1) or False, max_attempts=15, interval=1.0, sleep=sleeps.append)

    assert probe.state is ProbeState.UNCHECKED
    assert probe.run() is ProbeState.FAILED
    assert probe.attempts == 15
    assert len(calls) == 15
    assert sleeps == [1.0] * 15


def test_probe_stops_at_first_success() -> None:
    answers = iter([False, False, True, True])
    probe = ReadinessProbe(lambda: next(answers), max_attempts=15, interval=0.0, sleep=lambda _s: None)

    assert probe.run() is ProbeState.READY
    assert probe.attempts == 3
    assert probe.step() is ProbeState.READY
    assert probe.attempts == 3


def test_probe_rejects_empty_budget() -> None:
    with pytest.raises(ValueError):
        ReadinessProbe(lambda: True, max_attempts=0)


def test_external_engine_is_reused_and_never_killed() -> None:
    client = _ScriptedClient([True])
    popen = _PopenRecorder()
    supervisor = _supervisor(client, popen, [])

    handle, ready = supervisor.ensure_running()
    supervisor.shutdown()

    assert (handle, ready) == (None, True)
    assert supervisor.state is ProbeState.READY
    assert popen.calls == []
    assert popen.process.terminate_calls == 0


def test_spawned_engine_is_terminated_exactly_once() -> None:
    client = _ScriptedClient([False, False, True])
    popen = _PopenRecorder()
    sleeps: List[float] = []
    supervisor = _supervisor(client, popen, sleeps, probe_interval=1.0)

    handle, ready = supervisor.ensure_running()

    assert ready is True
    assert handle is popen.process
    assert supervisor.owns_process
    assert supervisor.probe.attempts == 2
    assert sleeps == [1.0, 1.0]

    supervisor.shutdown()
    supervisor.shutdown()

    assert popen.process.terminate_calls == 1
    assert popen.process.kill_calls == 0
    assert not supervisor.owns_process


def test_spawn_points_engine_at_models_dir() -> None:
    client = _ScriptedClient([False, True])
    popen = _PopenRecorder()
    spawned: List[bool] = []
    supervisor = _supervisor(client, popen, [], on_spawn=lambda: spawned.append(True))

    supervisor.ensure_running()

    call = popen.calls[0]
    assert call["args"] == ["/opt/nomad/tools/ollama", "serve"]
    assert call["env"]["OLLAMA_MODELS"] == str(Path("/opt/nomad/models"))
    assert call["stdout"] is subprocess.DEVNULL
    assert spawned == [True]


def test_unreachable_engine_fails_after_budget() -> None:
    client = _ScriptedClient([False])
    popen = _PopenRecorder()
    supervisor = _supervisor(client, popen, [], probe_attempts=15, probe_interval=0.0)

    handle, ready = supervisor.ensure_running()

    assert ready is False
    assert supervisor.state is ProbeState.FAILED
    assert supervisor.probe.attempts == 15
    # One reachability check before spawning, then the bounded readiness polls.
    assert client.calls == 1 + 15

    supervisor.shutdown()
    assert handle is popen.process
    assert popen.process.terminate_calls == 1


def test_missing_binary_fails_without_polling() -> None:
    client = _ScriptedClient([False])
    popen = _PopenRecorder(error=FileNotFoundError(2, "No such file", "ollama"))
    supervisor = _supervisor(client, popen, [])

    handle, ready = supervisor.ensure_running()

    assert (handle, ready) == (None, False)
    assert supervisor.state is ProbeState.FAILED
    assert supervisor.probe.attempts == 0
    supervisor.shutdown()


def test_shutdown_kills_engine_that_ignores_terminate() -> None:
    client = _ScriptedClient([False, True])
    popen = _PopenRecorder(process=_FakeProcess(hang=True))
    supervisor = _supervisor(client, popen, [], shutdown_timeout=0.1)

    supervisor.ensure_running()
    supervisor.shutdown()

    assert popen.process.terminate_calls == 1
    assert popen.process.kill_calls == 1


def test_spawned_engine_listens_on_probed_address(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OLLAMA_HOST", "127.0.0.1:5555")
    client = _ScriptedClient([False, True])
    popen = _PopenRecorder()

    supervisor = _supervisor(client, popen, [])
    supervisor.ensure_running()

    assert popen.calls[0]["env"]["OLLAMA_HOST"] == "127.0.0.1:11434"
