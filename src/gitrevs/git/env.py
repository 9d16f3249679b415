"""Locating the git binary and building the environment it runs with.

Both are resolved once per process and reused by every invocation:
    - find_git(): path to the git executable, or None
    - check_git(): the same as a Result, failing with ENOGIT
    - git_env(): sanitized environment mapping for child processes
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from uuid import uuid4

from gitrevs.core.config import get_config
from gitrevs.core.console import get_logger
from gitrevs.core.result import Err, GitNotFoundError, Ok, Result

logger = get_logger(__name__)

GIT_PREFIX = "GIT_"

# GIT_* variables that callers may legitimately set to steer transport and auth.
ALLOWED_GIT_VARS = frozenset(
    {
        "GIT_ASKPASS",
        "GIT_EXEC_PATH",
        "GIT_PROXY_COMMAND",
        "GIT_SSH",
        "GIT_SSH_COMMAND",
        "GIT_SSL_CAINFO",
        "GIT_SSL_NO_VERIFY",
    }
)

TEMPLATE_DIR_NAME = "gitrevs-git-template-tmp"


@lru_cache(maxsize=1)
def find_git() -> str | None:
    """Return the git executable on PATH, resolved once per process."""
    path = shutil.which("git")
    if path is None:
        logger.debug("No git executable found on PATH")
    return path


def check_git() -> Result[str, GitNotFoundError]:
    """Return the git executable as a Result.

    Returns:
        Ok(path to git), or Err(GitNotFoundError) when git is not on PATH
    """
    path = find_git()
    if path is None:
        return Err(
            GitNotFoundError(
                "No git binary found in $PATH",
                context={"PATH": os.environ.get("PATH", "")},
            )
        )
    return Ok(path)


def _template_dir() -> Path:
    root = get_config().git.template_root.expanduser()
    return root / TEMPLATE_DIR_NAME / f"git-clone-{uuid4().hex[:8]}"


def build_git_env(environ: Mapping[str, str]) -> dict[str, str]:
    """Build a child environment from ``environ``.

    Prompts are answered by ``echo`` and templates point at a fresh
    directory. Ambient variables follow, minus any GIT_* name outside the
    allow-list, so an ambient GIT_ASKPASS still takes precedence.
    """
    env = {
        "GIT_ASKPASS": "echo",
        "GIT_TEMPLATE_DIR": str(_template_dir()),
    }
    for key, value in environ.items():
        if key in ALLOWED_GIT_VARS or not key.startswith(GIT_PREFIX):
            env[key] = value
    return env


@lru_cache(maxsize=1)
def git_env() -> Mapping[str, str]:
    """Return the process-wide git environment (read-only)."""
    return MappingProxyType(build_git_env(os.environ))


__all__ = [
    "ALLOWED_GIT_VARS",
    "build_git_env",
    "check_git",
    "find_git",
    "git_env",
]
