"""Remote reference resolution.

Lists a remote repository's branches and tags with ``git ls-remote``, parses
the listing into a ResolutionResult, and indexes it by commit, semantic
version and dist-tag. Results are cached per repository for a few minutes
and concurrent lookups of the same repository share one git process.

Usage:
    match await revs("https://github.com/org/repo.git"):
        case Ok(result):
            ref = result.versions.get("1.2.3")
        case Err(err):
            ...
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from gitrevs.core.config import get_config
from gitrevs.core.console import get_logger
from gitrevs.core.result import Err, GitError, Ok, Result
from gitrevs.git.cache import InFlight, TTLCache
from gitrevs.git.env import find_git
from gitrevs.git.options import GitOptions, check_options
from gitrevs.git.process import collect_output, process_error, spawn_git

logger = get_logger(__name__)

LS_REMOTE_ARGS = ("ls-remote", "-h", "-t")

REFS_TAGS = "refs/tags/"
REFS_HEADS = "refs/heads/"
HEAD = "HEAD"
LATEST = "latest"
DEREF_SUFFIX = "^{}"

_NAMESPACE_RE = re.compile(r"(?:refs/[^/]+/)?(.*)")
_VERSION_RE = re.compile(r"v?(\d+\.\d+\.\d+)$")


class RefType(StrEnum):
    TAG = "tag"
    BRANCH = "branch"
    HEAD = "head"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RemoteReference:
    sha: str
    ref: str
    type: RefType

    def to_dict(self) -> dict[str, str]:
        return {"sha": self.sha, "ref": self.ref, "type": str(self.type)}


@dataclass
class ResolutionResult:
    """Structured view of one remote's references.

    ``shas`` maps each commit to the reference names pointing at it, which
    lets a shallow clone target a commit when some ref names it. Results
    are shared between callers and must not be mutated.
    """

    refs: dict[str, RemoteReference] = field(default_factory=dict)
    shas: dict[str, list[str]] = field(default_factory=dict)
    versions: dict[str, RemoteReference] = field(default_factory=dict)
    dist_tags: dict[str, RemoteReference] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-serializable form."""
        return {
            "refs": {name: doc.to_dict() for name, doc in self.refs.items()},
            "shas": {sha: list(names) for sha, names in self.shas.items()},
            "versions": {version: doc.to_dict() for version, doc in self.versions.items()},
            "dist-tags": {tag: doc.to_dict() for tag, doc in self.dist_tags.items()},
        }


def ref_type(line: str) -> RefType:
    """Classify a raw listing line by the namespace it mentions."""
    if REFS_TAGS in line:
        return RefType.TAG
    if REFS_HEADS in line:
        return RefType.BRANCH
    if line.endswith(HEAD):
        return RefType.HEAD
    return RefType.OTHER


def _add_line(result: ResolutionResult, line: str) -> None:
    fields = line.split(None, 2)
    if len(fields) < 2:
        return
    sha, full_ref = fields[0], fields[1]
    match = _NAMESPACE_RE.match(full_ref)
    ref = match.group(1) if match else ""
    if not ref or full_ref.endswith(DEREF_SUFFIX):
        return

    doc = RemoteReference(sha=sha, ref=ref, type=ref_type(line))
    result.refs[ref] = doc
    result.shas.setdefault(sha, []).append(ref)

    if doc.type is RefType.TAG:
        version = _VERSION_RE.search(ref)
        if version:
            result.versions[version.group(1)] = doc


def _add_dist_tags(result: ResolutionResult) -> None:
    head = result.refs.get(HEAD)
    if head is None:
        return
    for doc in result.versions.values():
        if doc.sha == head.sha:
            result.dist_tags[HEAD] = doc
            if LATEST not in result.refs:
                result.dist_tags[LATEST] = head


def parse_ls_remote(output: str) -> ResolutionResult:
    """Parse ``git ls-remote`` output.

    Lines that do not split into a sha and a ref are skipped, as are
    peeled tag entries (``^{}``) which repeat the tag's commit.
    """
    result = ResolutionResult()
    for raw in output.splitlines():
        _add_line(result, raw.strip())
    _add_dist_tags(result)
    return result


class RevsResolver:
    """Cached, deduplicated access to remote reference listings."""

    def __init__(self, cache: TTLCache[ResolutionResult] | None = None) -> None:
        if cache is None:
            settings = get_config().cache
            cache = TTLCache(max_entries=settings.max_entries, ttl=settings.ttl_seconds)
        self.cache = cache
        self._inflight: InFlight[Result[ResolutionResult, GitError]] = InFlight()

    async def resolve(self, repo: str, opts: Any = None) -> Result[ResolutionResult, GitError]:
        """List and index the references of repo.

        Cached results are returned without running git. Concurrent calls
        for the same repo share a single ls-remote process.

        Args:
            repo: URL or path understood by git ls-remote
            opts: Options object, normalized with check_options

        Returns:
            Ok(ResolutionResult), or Err(GitNotFoundError | GitProcessError)
        """
        options = check_options(opts)
        cached = self.cache.get(repo)
        if cached is not None:
            logger.debug("ls-remote cache hit for %s", repo)
            return Ok(cached)
        return await self._inflight.run(f"ls-remote:{repo}", lambda: self._fetch(repo, options))

    async def _fetch(self, repo: str, opts: GitOptions) -> Result[ResolutionResult, GitError]:
        args = [*LS_REMOTE_ARGS, repo]
        match await spawn_git(args, opts=opts):
            case Err(err):
                return Err(err)
            case Ok(process):
                pass

        returncode, stdout, stderr = await collect_output(process)
        if returncode != 0:
            git_path = find_git() or "git"
            return Err(
                process_error(git_path, args, returncode=returncode, stderr=stderr, repo=repo)
            )

        result = parse_ls_remote(stdout)
        logger.debug(
            "Resolved %d refs (%d versions) for %s", len(result.refs), len(result.versions), repo
        )
        self.cache.put(repo, result)
        return Ok(result)

    def invalidate(self, repo: str) -> None:
        """Drop the cached listing for repo so the next resolve queries again."""
        self.cache.invalidate(repo)

    def clear(self) -> None:
        self.cache.clear()


# Module-level default resolver (lazy initialized)
_default_resolver: RevsResolver | None = None
_default_resolver_lock = threading.Lock()


def get_default_resolver() -> RevsResolver:
    """Get the process-wide resolver, creating it on first access."""
    global _default_resolver
    if _default_resolver is None:
        with _default_resolver_lock:
            if _default_resolver is None:
                _default_resolver = RevsResolver()
    return _default_resolver


def reset_default_resolver() -> None:
    """Drop the process-wide resolver and its cache (primarily for testing)."""
    global _default_resolver
    with _default_resolver_lock:
        if _default_resolver is not None:
            _default_resolver.clear()
        _default_resolver = None


async def revs(repo: str, opts: Any = None) -> Result[ResolutionResult, GitError]:
    """Resolve a remote's references through the shared cache."""
    return await get_default_resolver().resolve(repo, opts)


__all__ = [
    "RefType",
    "RemoteReference",
    "ResolutionResult",
    "RevsResolver",
    "get_default_resolver",
    "parse_ls_remote",
    "ref_type",
    "reset_default_resolver",
    "revs",
]
