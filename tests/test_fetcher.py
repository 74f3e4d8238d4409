"""Tests for repoloc.fetcher."""

from __future__ import annotations

from pathlib import Path

import pytest

from repoloc.config import ServiceConfig
from repoloc.errors import CloneError, FetchTimeoutError, RepoMetadataError, RepoTooLargeError
from repoloc.fetcher import RepoStatsFetcher
from repoloc.models import RepoMeta
from tests._fixtures.doubles import FakeClock
from tests._fixtures.repo_builder import write_tree


class StubMetadataClient:
    def __init__(self, meta: RepoMeta | None = None, error: Exception | None = None) -> None:
        self.meta = meta or RepoMeta(size_kb=1024, default_branch="main")
        self.error = error
        self.calls: list[dict[str, object]] = []

    def lookup(self, repo_url: str, *, timeout=None, token=None) -> RepoMeta:
        self.calls.append({"repo_url": repo_url, "timeout": timeout, "token": token})
        if self.error is not None:
            raise self.error
        return self.meta


class RecordingCloner:
    def __init__(self, files: dict[str, str] | None = None, error: Exception | None = None) -> None:
        self.files = files or {
            "cmd/main.go": "package main\n\nfunc main() {}\n",
            "vendor/dep/dep.go": "package dep\n",
            "README.md": "# Title\n",
        }
        self.error = error
        self.calls: list[dict[str, object]] = []

    def __call__(self, repo_url: str, dest: Path, *, branch=None, timeout=None) -> Path:
        self.calls.append({"repo_url": repo_url, "dest": Path(dest), "branch": branch, "timeout": timeout})
        if self.error is not None:
            raise self.error
        Path(dest).mkdir(parents=True)
        write_tree(Path(dest), self.files)
        return Path(dest)


def _fetcher(metadata: StubMetadataClient, cloner: RecordingCloner, clock: FakeClock | None = None) -> RepoStatsFetcher:
    return RepoStatsFetcher(metadata_client=metadata, cloner=cloner, clock=clock or FakeClock())


def test_fetch_counts_checkout_with_exclusions() -> None:
    metadata = StubMetadataClient()
    cloner = RecordingCloner()
    config = ServiceConfig(exclude_dirs=("vendor",), github_token="tok")

    stats = _fetcher(metadata, cloner).fetch("https://github.com/o/r", "", config=config)

    assert {stat.path for stat in stats} == {"cmd/main.go", "README.md"}
    assert cloner.calls[0]["branch"] == "main"
    assert metadata.calls[0]["token"] == "tok"
    # The temporary checkout is removed once counting finishes.
    assert not cloner.calls[0]["dest"].exists()


def test_fetch_uses_requested_branch() -> None:
    cloner = RecordingCloner()

    _fetcher(StubMetadataClient(), cloner).fetch(
        "https://github.com/o/r", "release", config=ServiceConfig()
    )

    assert cloner.calls[0]["branch"] == "release"


def test_fetch_rejects_oversized_repository_before_cloning() -> None:
    metadata = StubMetadataClient(RepoMeta(size_kb=300 * 1024, default_branch="main"))
    cloner = RecordingCloner()

    with pytest.raises(RepoTooLargeError, match="300 MB exceeds limit 100 MB"):
        _fetcher(metadata, cloner).fetch("https://github.com/o/r", config=ServiceConfig())

    assert cloner.calls == []


def test_fetch_propagates_metadata_failure_without_cloning() -> None:
    cloner = RecordingCloner()

    with pytest.raises(RepoMetadataError):
        _fetcher(StubMetadataClient(error=RepoMetadataError("github api error: 404")), cloner).fetch(
            "https://github.com/o/r", config=ServiceConfig()
        )

    assert cloner.calls == []


def test_fetch_propagates_clone_failure_and_cleans_up() -> None:
    cloner = RecordingCloner(error=CloneError("git clone failed"))

    with pytest.raises(CloneError):
        _fetcher(StubMetadataClient(), cloner).fetch("https://github.com/o/r", config=ServiceConfig())

    assert not cloner.calls[0]["dest"].parent.exists()


def test_fetch_passes_remaining_time_to_each_step() -> None:
    clock = FakeClock(start=100.0)
    metadata = StubMetadataClient()
    cloner = RecordingCloner()

    _fetcher(metadata, cloner, clock).fetch(
        "https://github.com/o/r", config=ServiceConfig(), deadline=130.0
    )

    assert metadata.calls[0]["timeout"] == pytest.approx(30.0)
    assert cloner.calls[0]["timeout"] == pytest.approx(30.0)


def test_fetch_fails_when_deadline_already_passed() -> None:
    clock = FakeClock(start=200.0)
    metadata = StubMetadataClient()

    with pytest.raises(FetchTimeoutError):
        _fetcher(metadata, RecordingCloner(), clock).fetch(
            "https://github.com/o/r", config=ServiceConfig(), deadline=150.0
        )

    assert metadata.calls == []
