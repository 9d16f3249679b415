"""gitrevs - asyncio client over the git binary for package resolution.

Clones repositories (full or shallow), checks out committishes, syncs
submodules, and lists remote references indexed by version and dist-tag.

Exports:
    __version__: Package version string.
"""

from __future__ import annotations

from gitrevs.core.result import (
    Err,
    GitError,
    GitNotFoundError,
    GitProcessError,
    GitRevsError,
    Ok,
    Result,
)
from gitrevs.git import (
    GitOptions,
    ResolutionResult,
    RemoteReference,
    clone,
    revs,
    shallow,
)

__all__ = [
    "Err",
    "GitError",
    "GitNotFoundError",
    "GitOptions",
    "GitProcessError",
    "GitRevsError",
    "Ok",
    "RemoteReference",
    "ResolutionResult",
    "Result",
    "__version__",
    "clone",
    "revs",
    "shallow",
]

__version__ = "0.1.0"
