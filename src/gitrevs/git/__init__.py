"""Git operations over the locally installed binary.

This package provides async git operations:
    - revs: cached, deduplicated remote reference listing
    - clone / shallow: clone workflows returning the checked-out sha
    - exec_git / spawn_git: process plumbing with a sanitized environment
"""

from __future__ import annotations

from .cache import InFlight, TTLCache
from .env import check_git, find_git, git_env
from .options import GitOptions, check_options
from .process import CommandResult, exec_git, spawn_git
from .resolver import (
    RefType,
    RemoteReference,
    ResolutionResult,
    RevsResolver,
    get_default_resolver,
    parse_ls_remote,
    reset_default_resolver,
    revs,
)
from .workflow import checkout, clone, head_sha, shallow, update_submodules

__all__ = [
    "CommandResult",
    "GitOptions",
    "InFlight",
    "RefType",
    "RemoteReference",
    "ResolutionResult",
    "RevsResolver",
    "TTLCache",
    "check_git",
    "check_options",
    "checkout",
    "clone",
    "exec_git",
    "find_git",
    "get_default_resolver",
    "git_env",
    "head_sha",
    "parse_ls_remote",
    "reset_default_resolver",
    "revs",
    "shallow",
    "spawn_git",
    "update_submodules",
]
