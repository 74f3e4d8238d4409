"""Shallow clone helper built on the git CLI."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from ..errors import CloneError, FetchTimeoutError
from ..logging import get_logger

_PROXY_ENV_KEYS = ("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy")

logger = get_logger("git.clone")


def build_clone_command(repo_url: str, dest: Path | str, branch: str | None = None) -> List[str]:
    args = ["git", "clone", "--depth=1", "--single-branch"]
    if branch:
        args.extend(["--branch", branch])
    args.extend([repo_url, str(dest)])
    return args


def clone_repo(
    repo_url: str,
    dest: Path | str,
    *,
    branch: str | None = None,
    timeout: Optional[float] = None,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> Path:
    """Clone the tip of ``branch`` into ``dest`` and return the checkout path.

    Proxy variables in the process environment are inherited by git.
    """
    env = os.environ.copy()
    for key in _PROXY_ENV_KEYS:
        if env.get(key):
            logger.info("[Process] Using %s: %s", key, env[key])
            break

    logger.info("[Process] Cloning %s (branch: %s) to %s", repo_url, branch or "default", dest)
    try:
        runner(
            build_clone_command(repo_url, dest, branch),
            check=True,
            capture_output=True,
            text=True,
            env=env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise FetchTimeoutError(f"git clone timed out after {exc.timeout:.0f}s") from exc
    except FileNotFoundError as exc:  # pragma: no cover - environment dependent
        raise CloneError("Unable to locate 'git'. Install git to analyze repositories.") from exc
    except subprocess.CalledProcessError as exc:
        output = "\n".join(
            part.strip() for part in (exc.stdout or "", exc.stderr or "") if part and part.strip()
        )
        raise CloneError(
            f"git clone failed: exit status {exc.returncode}, output: {output}"
        ) from exc
    return Path(dest)


__all__ = ["build_clone_command", "clone_repo"]
