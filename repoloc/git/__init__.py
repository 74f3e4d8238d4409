"""Git hosting collaborators: metadata lookups and shallow clones."""

from .clone import build_clone_command, clone_repo
from .metadata import GitHubMetadataClient, parse_repo_slug

__all__ = ["GitHubMetadataClient", "build_clone_command", "clone_repo", "parse_repo_slug"]
