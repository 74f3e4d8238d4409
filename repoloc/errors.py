"""Error taxonomy shared by the analysis pipeline and the service."""

from __future__ import annotations


class RepolocError(RuntimeError):
    """Base class for every error raised deliberately by repoloc."""


class InvalidRequestError(RepolocError):
    """Raised when an analysis request is missing required input."""


class ConfigError(RepolocError):
    """Raised when configuration cannot be parsed or applied."""


class UpstreamError(RepolocError):
    """Raised when the repository host rejects or cannot serve a pre-flight check."""


class RepoMetadataError(UpstreamError):
    """Raised when repository metadata cannot be retrieved."""


class RepoTooLargeError(UpstreamError):
    """Raised when the declared repository size exceeds the configured limit."""


class FetchError(RepolocError):
    """Raised when cloning or counting a repository fails."""


class CloneError(FetchError):
    """Raised when ``git clone`` exits unsuccessfully."""


class CountError(FetchError):
    """Raised when the line counting pass cannot complete."""


class FetchTimeoutError(FetchError):
    """Raised when a fetch runs past its deadline."""


class AnalysisError(RepolocError):
    """Raised when tree building or aggregation fails unexpectedly."""


__all__ = [
    "AnalysisError",
    "CloneError",
    "ConfigError",
    "CountError",
    "FetchError",
    "FetchTimeoutError",
    "InvalidRequestError",
    "RepoMetadataError",
    "RepoTooLargeError",
    "RepolocError",
    "UpstreamError",
]
