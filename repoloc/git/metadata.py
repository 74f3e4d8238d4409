"""Repository metadata lookups against the GitHub REST API."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import RepoMetadataError
from ..logging import get_logger
from ..models import RepoMeta

DEFAULT_API_BASE = "https://api.github.com"


def parse_repo_slug(repo_url: str) -> Tuple[str, str]:
    """Return ``(owner, repo)`` from a repository URL such as ``https://github.com/o/r.git``."""
    trimmed = repo_url.strip().rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    parts = [part for part in trimmed.split("/") if part]
    if len(parts) < 2:
        raise RepoMetadataError("invalid github url")
    return parts[-2], parts[-1]


class GitHubMetadataClient:
    """Fetches declared size and default branch for a repository."""

    def __init__(
        self,
        token: str | None = None,
        *,
        api_base: str = DEFAULT_API_BASE,
        opener: Callable[..., Any] = urlopen,
    ) -> None:
        self.token = token
        self.api_base = api_base.rstrip("/")
        self._opener = opener
        self.logger = get_logger("git.metadata")

    def lookup(
        self, repo_url: str, *, timeout: Optional[float] = None, token: str | None = None
    ) -> RepoMeta:
        owner, repo = parse_repo_slug(repo_url)
        effective_token = token if token is not None else self.token

        headers = {"Accept": "application/vnd.github.v3+json"}
        if effective_token:
            headers["Authorization"] = f"Bearer {effective_token}"
        request = Request(f"{self.api_base}/repos/{owner}/{repo}", headers=headers, method="GET")

        try:
            with self._opener(request, timeout=timeout or 30.0) as response:
                status = getattr(response, "status", 200)
                raw = response.read()
        except HTTPError as exc:
            raise RepoMetadataError(f"github api error: {exc.code} {exc.reason}") from exc
        except URLError as exc:
            raise RepoMetadataError(f"api network error: {exc.reason}") from exc
        except TimeoutError as exc:
            raise RepoMetadataError("api network error: timed out") from exc

        if status != 200:
            raise RepoMetadataError(f"github api error: {status}")

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise RepoMetadataError(f"failed to decode api response: {exc}") from exc
        if not isinstance(payload, dict):
            raise RepoMetadataError("failed to decode api response: expected an object")

        size = payload.get("size")
        branch = payload.get("default_branch")
        meta = RepoMeta(
            size_kb=size if isinstance(size, int) and not isinstance(size, bool) else 0,
            default_branch=branch if isinstance(branch, str) else "",
        )
        self.logger.info(
            "[API] %s - Size: %d KB, Default branch: %s",
            "Authenticated" if effective_token else "Anonymous",
            meta.size_kb,
            meta.default_branch or "(unknown)",
        )
        return meta


__all__ = ["DEFAULT_API_BASE", "GitHubMetadataClient", "parse_repo_slug"]
