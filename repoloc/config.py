"""Runtime configuration for repoloc (.repoloc.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError
from .logging import get_logger
from .stores.ttl_cache import ReadWriteLock

CONFIG_FILENAME = ".repoloc.yml"

# Directories that never hold first-party source: dependency trees, VCS
# metadata, IDE settings and tool caches.
DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = (
    "node_modules",
    "vendor",
    "Pods",
    ".venv",
    "venv",
    "env",
    "virtualenv",
    "__pycache__",
    ".bundle",
    "bower_components",
    "jspm_packages",
    ".git",
    ".svn",
    ".hg",
    ".idea",
    ".vscode",
    ".vs",
    ".eclipse",
    ".cache",
    ".npm",
    ".yarn",
    ".gradle",
    ".nuget",
    ".pnp",
)

_POSITIVE_INT_FIELDS = ("cache_ttl", "default_depth", "request_timeout", "max_repo_size_mb")
_BOOL_FIELDS = ("include_data_files", "include_documentation")

logger = get_logger("config")


@dataclass(frozen=True)
class ServiceConfig:
    """Immutable snapshot of the settings that drive an analysis."""

    cache_ttl: int = 60 * 60 * 24 * 7
    default_depth: int = 5
    request_timeout: int = 120
    max_repo_size_mb: int = 100
    exclude_dirs: Tuple[str, ...] = field(default=DEFAULT_EXCLUDE_DIRS)
    include_data_files: bool = False
    include_documentation: bool = False
    github_token: Optional[str] = field(default=None, repr=False)

    def to_public_dict(self) -> Dict[str, Any]:
        """Return the settings safe to expose over the API (no credentials)."""
        data = asdict(self)
        data.pop("github_token", None)
        data["cache_ttl_seconds"] = data.pop("cache_ttl")
        data["request_timeout_seconds"] = data.pop("request_timeout")
        data["exclude_dirs"] = list(self.exclude_dirs)
        return data


@dataclass(frozen=True)
class ConfigUpdate:
    """Result of applying a configuration patch."""

    config: ServiceConfig
    exclusions_changed: bool


class ConfigStore:
    """Thread-safe holder for the current :class:`ServiceConfig`."""

    def __init__(
        self,
        initial: ServiceConfig | None = None,
        *,
        on_exclusions_changed: Callable[[], None] | None = None,
    ) -> None:
        self._config = initial or ServiceConfig()
        self._lock = ReadWriteLock()
        self.on_exclusions_changed = on_exclusions_changed

    def snapshot(self) -> ServiceConfig:
        with self._lock.read():
            return self._config

    def update(self, changes: Mapping[str, Any]) -> ConfigUpdate:
        """Apply ``changes`` and report whether the exclusion list changed.

        Positive integers replace the numeric limits; other numeric values are
        ignored. ``exclude_dirs`` replaces the list whenever it is present,
        including an empty list. The two inclusion flags are always
        overwritten and default to ``False`` when absent.
        """
        patch = _validate_patch(changes)
        with self._lock.write():
            current = self._config
            updates: Dict[str, Any] = {}
            for name in _POSITIVE_INT_FIELDS:
                value = patch.get(name)
                if value is not None and value > 0:
                    updates[name] = value
            exclusions_changed = False
            if "exclude_dirs" in patch:
                new_dirs = patch["exclude_dirs"]
                exclusions_changed = new_dirs != current.exclude_dirs
                updates["exclude_dirs"] = new_dirs
            for name in _BOOL_FIELDS:
                updates[name] = bool(patch.get(name, False))
            self._config = replace(current, **updates)
            updated = self._config

        if exclusions_changed:
            logger.info("Excluded directories changed; invalidating cached analyses")
            if self.on_exclusions_changed is not None:
                self.on_exclusions_changed()
        logger.info("Configuration updated: %s", updated.to_public_dict())
        return ConfigUpdate(config=updated, exclusions_changed=exclusions_changed)


def load_config(
    config_path: Path | None = None, environ: Mapping[str, str] | None = None
) -> ServiceConfig:
    """Build a configuration from defaults, an optional YAML file, then the environment."""
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if config_path is not None:
        config_file = _resolve_config_path(config_path)
        if config_file.exists():
            values.update(_parse_file_values(_read_config(config_file)))

    config = replace(ServiceConfig(), **values)
    return _apply_environment(config, env)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _parse_file_values(data: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in _POSITIVE_INT_FIELDS:
        number = _as_int(data.get(name))
        if number is not None and number > 0:
            values[name] = number
    if "exclude_dirs" in data:
        values["exclude_dirs"] = tuple(_as_str_list(data.get("exclude_dirs")))
    for name in _BOOL_FIELDS:
        flag = _as_bool(data.get(name))
        if flag is not None:
            values[name] = flag
    token = _as_str(data.get("github_token"))
    if token:
        values["github_token"] = token
    return values


def _apply_environment(config: ServiceConfig, env: Mapping[str, str]) -> ServiceConfig:
    updates: Dict[str, Any] = {}
    for env_key, name, positive in (
        ("CACHE_TTL", "cache_ttl", False),
        ("MAX_REPO_SIZE_MB", "max_repo_size_mb", False),
        ("DEFAULT_DEPTH", "default_depth", True),
        ("REQUEST_TIMEOUT", "request_timeout", True),
    ):
        number = _as_int(env.get(env_key))
        if number is None or (positive and number <= 0):
            continue
        updates[name] = number
    token = env.get("GITHUB_TOKEN")
    if token:
        updates["github_token"] = token
    extra_dirs = env.get("EXCLUDE_DIRS")
    if extra_dirs:
        additions = [item.strip() for item in extra_dirs.split(",") if item.strip()]
        updates["exclude_dirs"] = tuple(config.exclude_dirs) + tuple(additions)
    return replace(config, **updates) if updates else config


def _validate_patch(changes: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(changes, Mapping):
        raise ConfigError("Configuration update must be a mapping")
    patch: Dict[str, Any] = {}
    for name in _POSITIVE_INT_FIELDS:
        value = changes.get(name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{name} must be an integer")
        patch[name] = value
    if "exclude_dirs" in changes and changes["exclude_dirs"] is not None:
        dirs = changes["exclude_dirs"]
        if isinstance(dirs, (str, bytes)) or not isinstance(dirs, Sequence):
            raise ConfigError("exclude_dirs must be a list of directory names")
        if not all(isinstance(item, str) for item in dirs):
            raise ConfigError("exclude_dirs must only contain strings")
        patch["exclude_dirs"] = tuple(dirs)
    for name in _BOOL_FIELDS:
        value = changes.get(name)
        if value is None:
            continue
        if not isinstance(value, bool):
            raise ConfigError(f"{name} must be a boolean")
        patch[name] = value
    return patch


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigStore",
    "ConfigUpdate",
    "DEFAULT_EXCLUDE_DIRS",
    "ServiceConfig",
    "load_config",
]
