"""Tests for the shallow clone helper."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from repoloc.errors import CloneError, FetchTimeoutError
from repoloc.git.clone import build_clone_command, clone_repo


def test_build_clone_command_with_and_without_branch(tmp_path: Path) -> None:
    dest = tmp_path / "checkout"

    assert build_clone_command("https://h/o/r", dest) == [
        "git",
        "clone",
        "--depth=1",
        "--single-branch",
        "https://h/o/r",
        str(dest),
    ]
    assert build_clone_command("https://h/o/r", dest, "dev")[4:6] == ["--branch", "dev"]


def test_clone_repo_passes_timeout_and_environment(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("HTTPS_PROXY", "http://proxy:3128")
    calls: list[dict[str, object]] = []

    def runner(args, **kwargs):
        calls.append({"args": args, **kwargs})
        return subprocess.CompletedProcess(args, 0, "", "")

    result = clone_repo("https://h/o/r", tmp_path / "c", branch="main", timeout=12.5, runner=runner)

    assert result == tmp_path / "c"
    assert calls[0]["timeout"] == 12.5
    assert calls[0]["env"]["HTTPS_PROXY"] == "http://proxy:3128"
    assert "--branch" in calls[0]["args"]


def test_clone_repo_reports_git_failure(tmp_path: Path) -> None:
    def runner(args, **kwargs):
        raise subprocess.CalledProcessError(128, args, output="", stderr="fatal: repository not found\n")

    with pytest.raises(CloneError, match="repository not found"):
        clone_repo("https://h/o/missing", tmp_path / "c", runner=runner)


def test_clone_repo_reports_timeout(tmp_path: Path) -> None:
    def runner(args, **kwargs):
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    with pytest.raises(FetchTimeoutError):
        clone_repo("https://h/o/r", tmp_path / "c", timeout=1, runner=runner)


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_clone_repo_clones_local_repository(tmp_path: Path) -> None:
    origin = tmp_path / "origin"
    origin.mkdir()
    (origin / "main.py").write_text("print('hi')\n", encoding="utf-8")

    def git(*args: str) -> None:
        subprocess.run(
            ["git", "-c", "user.name=test", "-c", "user.email=test@example.com", *args],
            cwd=origin,
            check=True,
            capture_output=True,
        )

    git("init", "-q", "-b", "trunk")
    git("add", "main.py")
    git("commit", "-q", "-m", "initial")

    checkout = clone_repo(origin.as_uri(), tmp_path / "checkout", branch="trunk", timeout=60)

    assert (checkout / "main.py").read_text(encoding="utf-8") == "print('hi')\n"
