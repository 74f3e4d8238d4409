"""Request orchestration: cache lookup, fetch on miss, filter, build tree and totals."""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Tuple

from .analyzers import build_tree, calculate_language_stats, filter_files
from .config import ConfigStore, ConfigUpdate, ServiceConfig
from .errors import AnalysisError, InvalidRequestError
from .fetcher import RepoStatsFetcher
from .logging import get_logger
from .models import AnalyzeResult, FileStat
from .stores import TTLCache

SOURCE_CACHE = "cache"
SOURCE_LIVE = "live"


class StatsFetcher(Protocol):
    def fetch(
        self,
        repo_url: str,
        branch: str = "",
        *,
        config: ServiceConfig,
        deadline: Optional[float] = None,
    ) -> Sequence[FileStat]:
        ...


def cache_key(repo_url: str, branch: str) -> str:
    return f"{repo_url}|{branch}"


def extract_project_name(repo_url: str) -> str:
    """Return the repository name from its URL, e.g. ``proj`` for ``https://host/o/proj.git``."""
    cleaned = repo_url
    if len(cleaned) > 4 and cleaned.endswith(".git"):
        cleaned = cleaned[:-4]
    cleaned = cleaned.rstrip("/")
    name = cleaned.split("/")[-1] if cleaned else ""
    return name or "root"


class Orchestrator:
    """Coordinates cached repository analyses for the CLI and the HTTP service."""

    def __init__(
        self,
        config_store: ConfigStore | None = None,
        cache: TTLCache | None = None,
        fetcher: StatsFetcher | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.config_store = config_store or ConfigStore()
        self.cache = cache or TTLCache()
        self.fetcher: StatsFetcher = fetcher or RepoStatsFetcher()
        self._clock = clock
        self._wall_clock = wall_clock
        self.config_store.on_exclusions_changed = self.cache.clear
        self.logger = get_logger("orchestrator")

    def analyze(self, repo_url: str, branch: str = "", max_depth: int = 0) -> AnalyzeResult:
        """Analyze ``repo_url`` at ``branch`` and return the tree and language totals."""
        repo_url = (repo_url or "").strip()
        branch = (branch or "").strip()
        if not repo_url:
            raise InvalidRequestError("repo_url is required")

        # Read before the snapshot so a concurrent exclusion change is detected.
        generation = self.cache.generation
        config = self.config_store.snapshot()
        files, source = self._load_files(repo_url, branch, config, generation)

        try:
            filtered = filter_files(
                files, config.include_data_files, config.include_documentation
            )
            self.logger.info(
                "[Filter] Applied language filter: %d -> %d files", len(files), len(filtered)
            )
            depth = max_depth if max_depth and max_depth > 0 else config.default_depth
            root = build_tree(filtered, depth, extract_project_name(repo_url))
            languages = calculate_language_stats(filtered)
        except Exception as exc:
            self.logger.exception("Aggregation failed for %s", repo_url)
            raise AnalysisError(f"Failed to aggregate statistics: {exc}") from exc

        return AnalyzeResult(
            source=source,
            repo=repo_url,
            branch=branch,
            timestamp=int(self._wall_clock()),
            data=root,
            languages=languages,
        )

    def config(self) -> ServiceConfig:
        return self.config_store.snapshot()

    def update_config(self, changes: Mapping[str, Any]) -> ConfigUpdate:
        """Apply a configuration patch; cached analyses are dropped if exclusions change."""
        return self.config_store.update(changes)

    def close(self) -> None:
        self.cache.stop()

    # ------------------------------------------------------------------
    # Internal helpers

    def _load_files(
        self, repo_url: str, branch: str, config: ServiceConfig, generation: int
    ) -> Tuple[Tuple[FileStat, ...], str]:
        key = cache_key(repo_url, branch)
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.info("[Cache] Hit: %s", key)
            return cached, SOURCE_CACHE

        self.logger.info("[Cache] Miss: %s", key)
        deadline = self._clock() + config.request_timeout
        fetched = tuple(
            self.fetcher.fetch(repo_url, branch, config=config, deadline=deadline)
        )
        if not self.cache.set(key, fetched, config.cache_ttl, generation=generation):
            self.logger.info("[Cache] Skipped store for %s: cache cleared during fetch", key)
        return fetched, SOURCE_LIVE


__all__ = [
    "Orchestrator",
    "SOURCE_CACHE",
    "SOURCE_LIVE",
    "StatsFetcher",
    "cache_key",
    "extract_project_name",
]
