"""Coverage for model presence checks and best-effort pulls."""

from __future__ import annotations

from typing import Iterator, List, Optional

from central.errors import TransportFailure
from central.resolver import ModelResolver, model_installed


class _CatalogClient:
    def __init__(
        self,
        installed: Optional[List[str]] = None,
        *,
        catalog_error: bool = False,
        pull_error: bool = False,
        installs_on_pull: bool = True,
    ) -> None:
        self.installed = list(installed or [])
        self.catalog_error = catalog_error
        self.pull_error = pull_error
        self.installs_on_pull = installs_on_pull
        self.pulls: List[str] = []

    def list_models(self) -> List[str]:
        if self.catalog_error:
            raise TransportFailure("connection refused")
        return list(self.installed)

    def pull_model(self, model: str) -> Iterator[str]:
        self.pulls.append(model)
        yield "pulling manifest"
        if self.pull_error:
            raise TransportFailure("pull interrupted")
        yield "success"
        if self.installs_on_pull:
            self.installed.append(model)


def test_model_installed_accepts_latest_tag() -> None:
    assert model_installed("phi3", ["phi3:latest"])
    assert model_installed("phi3:mini", ["phi3:mini"])
    assert not model_installed("phi3:mini", ["phi3:mini-128k", "phi3:latest"])


def test_present_model_is_not_pulled() -> None:
    client = _CatalogClient(["qwen2.5-coder:3b"])
    resolver = ModelResolver(client)  # type: ignore[arg-type]

    assert resolver.ensure_model_available("qwen2.5-coder:3b") is True
    assert client.pulls == []


def test_missing_model_is_pulled_with_progress_passthrough() -> None:
    client = _CatalogClient([])
    lines: List[str] = []
    resolver = ModelResolver(client, progress=lines.append)  # type: ignore[arg-type]

    assert resolver.ensure_model_available("phi3:mini") is True
    assert client.pulls == ["phi3:mini"]
    assert lines == ["pulling manifest", "success"]


def test_second_check_issues_no_pull() -> None:
    client = _CatalogClient(["phi3:mini"])
    resolver = ModelResolver(client)  # type: ignore[arg-type]

    resolver.ensure_model_available("phi3:mini")
    resolver.ensure_model_available("phi3:mini")

    assert client.pulls == []


def test_catalog_failure_goes_straight_to_pull() -> None:
    client = _CatalogClient(catalog_error=True)
    resolver = ModelResolver(client)  # type: ignore[arg-type]

    assert resolver.ensure_model_available("phi3:mini") is True
    assert client.pulls == ["phi3:mini"]


def test_failed_pull_is_reported_not_raised() -> None:
    client = _CatalogClient(pull_error=True)
    lines: List[str] = []
    resolver = ModelResolver(client, progress=lines.append)  # type: ignore[arg-type]

    assert resolver.ensure_model_available("phi3:mini") is False
    assert client.pulls == ["phi3:mini"]
    assert lines[0] == "pulling manifest"
    assert lines[-1].startswith("Model pull failed")
