"""Fetch-and-count pipeline: pre-flight metadata check, shallow clone, line count."""

from __future__ import annotations

import tempfile
import time
from pathlib import Path
from typing import Callable, List, Optional

from .config import ServiceConfig
from .counter import LineCounter
from .errors import FetchTimeoutError, RepoTooLargeError
from .git.clone import clone_repo
from .git.metadata import GitHubMetadataClient
from .logging import get_logger
from .models import FileStat


class RepoStatsFetcher:
    """Produces the unfiltered per-file statistics for one repository/branch."""

    def __init__(
        self,
        metadata_client: GitHubMetadataClient | None = None,
        counter: LineCounter | None = None,
        cloner: Callable[..., Path] = clone_repo,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.metadata_client = metadata_client or GitHubMetadataClient()
        self.counter = counter or LineCounter(clock=clock)
        self._cloner = cloner
        self._clock = clock
        self.logger = get_logger("fetcher")

    def fetch(
        self,
        repo_url: str,
        branch: str = "",
        *,
        config: ServiceConfig,
        deadline: Optional[float] = None,
    ) -> List[FileStat]:
        """Return statistics for every counted file, honouring ``config.exclude_dirs``.

        Raises an :class:`~repoloc.errors.UpstreamError` when the pre-flight
        check rejects the repository and a :class:`~repoloc.errors.FetchError`
        when cloning or counting fails. Nothing is retried.
        """
        meta = self.metadata_client.lookup(
            repo_url,
            timeout=self._remaining(deadline),
            token=config.github_token,
        )
        if meta.size_mb > config.max_repo_size_mb:
            raise RepoTooLargeError(
                f"repo too large: {meta.size_mb} MB exceeds limit {config.max_repo_size_mb} MB"
            )
        self.logger.info(
            "[Pre-Check] Passed. Size: %d MB, Default branch: %s",
            meta.size_mb,
            meta.default_branch or "(unknown)",
        )

        target_branch = branch or meta.default_branch
        if branch:
            self.logger.info("[Branch] Using specified branch: %s", target_branch)
        else:
            self.logger.info("[Branch] Using default branch from API: %s", target_branch)

        with tempfile.TemporaryDirectory(prefix="repoloc_") as workdir:
            checkout = Path(workdir) / "repo"
            self._cloner(
                repo_url,
                checkout,
                branch=target_branch or None,
                timeout=self._remaining(deadline),
            )
            self.logger.info("[Process] Successfully cloned branch: %s", target_branch or "default")
            return self.counter.count(
                checkout,
                exclude_dirs=config.exclude_dirs,
                deadline=deadline,
            )

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise FetchTimeoutError("request timed out before the repository was fetched")
        return remaining


__all__ = ["RepoStatsFetcher"]
