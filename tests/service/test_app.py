"""Tests for the FastAPI service mode."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from repoloc.config import ConfigStore, ServiceConfig
from repoloc.errors import CloneError, RepoTooLargeError
from repoloc.orchestrator import Orchestrator
from repoloc.service import create_app
from repoloc.stores import TTLCache
from tests._fixtures.doubles import SAMPLE_FILES, StubFetcher


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher(SAMPLE_FILES)


@pytest.fixture
def orchestrator(fetcher: StubFetcher) -> Orchestrator:
    return Orchestrator(
        config_store=ConfigStore(ServiceConfig(github_token="secret")),
        cache=TTLCache(),
        fetcher=fetcher,
    )


@pytest.fixture
def client(orchestrator: Orchestrator) -> TestClient:
    app = create_app(lambda: orchestrator)
    return TestClient(app, raise_server_exceptions=False)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_analyze_endpoint_returns_live_then_cached_result(
    client: TestClient, fetcher: StubFetcher
) -> None:
    body = {"repo_url": "https://github.com/o/proj", "max_depth": 2}

    first = client.post("/api/analyze", json=body).json()
    second = client.post("/api/analyze", json=body).json()

    assert first["code"] == 0
    assert first["message"] == "success"
    assert first["data"]["source"] == "live"
    assert first["data"]["data"]["name"] == "proj"
    assert first["data"]["data"]["children"]["src"]["type"] == "dir"
    assert first["data"]["languages"][0]["language"] == "Go"
    assert second["data"]["source"] == "cache"
    assert len(fetcher.calls) == 1


def test_analyze_requires_repo_url(client: TestClient, fetcher: StubFetcher) -> None:
    response = client.post("/api/analyze", json={"branch": "main"})

    assert response.status_code == 200
    assert response.json() == {"code": 400, "message": "repo_url is required", "data": None}
    assert fetcher.calls == []


def test_analyze_rejects_malformed_body(client: TestClient) -> None:
    response = client.post("/api/analyze", json={"repo_url": "x/y", "max_depth": "deep"})

    payload = response.json()
    assert payload["code"] == 400
    assert payload["message"].startswith("Invalid JSON")


@pytest.mark.parametrize(
    "error",
    [
        CloneError("git clone failed: exit status 128"),
        RepoTooLargeError("repo too large: 300 MB exceeds limit 100 MB"),
    ],
)
def test_analyze_surfaces_fetch_errors(
    client: TestClient, fetcher: StubFetcher, orchestrator: Orchestrator, error: Exception
) -> None:
    fetcher.error = error

    payload = client.post("/api/analyze", json={"repo_url": "https://github.com/o/r"}).json()

    assert payload["code"] == 500
    assert payload["message"] == f"Analysis failed: {error}"
    assert payload["data"] is None
    assert len(orchestrator.cache) == 0


def test_unexpected_errors_become_internal_server_errors(
    client: TestClient, fetcher: StubFetcher
) -> None:
    fetcher.error = ValueError("unexpected")

    response = client.post("/api/analyze", json={"repo_url": "https://github.com/o/r"})

    assert response.status_code == 500
    assert response.json()["code"] == 500
    assert "unexpected" in response.json()["message"]


def test_get_config_hides_token(client: TestClient) -> None:
    payload = client.get("/api/config").json()

    assert payload["code"] == 0
    assert payload["data"]["default_depth"] == 5
    assert payload["data"]["cache_ttl_seconds"] == 604800
    assert payload["data"]["request_timeout_seconds"] == 120
    assert "github_token" not in payload["data"]


def test_update_config_applies_patch_and_clears_cache_on_exclusion_change(
    client: TestClient, orchestrator: Orchestrator
) -> None:
    client.post("/api/analyze", json={"repo_url": "https://github.com/o/r"})
    assert len(orchestrator.cache) == 1

    payload = client.post(
        "/api/config",
        json={"cache_ttl_seconds": 60, "exclude_dirs": ["dist"], "include_documentation": True},
    ).json()

    assert payload["code"] == 0
    assert payload["data"]["cache_ttl_seconds"] == 60
    assert payload["data"]["exclude_dirs"] == ["dist"]
    assert payload["data"]["include_documentation"] is True
    assert len(orchestrator.cache) == 0


def test_update_config_accepts_field_names_as_well_as_wire_keys(client: TestClient) -> None:
    payload = client.post(
        "/api/config", json={"request_timeout": 30, "default_depth": 2}
    ).json()

    assert payload["code"] == 0
    assert payload["data"]["request_timeout_seconds"] == 30
    assert payload["data"]["default_depth"] == 2


def test_cors_preflight_is_allowed(client: TestClient) -> None:
    response = client.options(
        "/api/analyze",
        headers={
            "Origin": "https://github.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
