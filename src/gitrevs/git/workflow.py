"""Clone, checkout and submodule workflows.

Each workflow is an ordered series of git invocations. The first failing
step ends the workflow and its error is returned unchanged; a partially
cloned target is left in place for the caller to clean up.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from gitrevs.core.config import get_config
from gitrevs.core.console import get_logger
from gitrevs.core.result import Err, GitError, Ok, Result
from gitrevs.git.options import GitOptions, check_options
from gitrevs.git.process import exec_git

logger = get_logger(__name__)

LONG_PATHS_ARGS = ("--config", "core.longpaths=true")


def _clone_args(base: list[str]) -> list[str]:
    if get_config().git.long_paths:
        return [*base, *LONG_PATHS_ARGS]
    return base


def _prepare_parent(target: Path) -> Result[Path, GitError]:
    parent = target.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return Err(
            GitError(
                "Cannot create clone destination parent",
                context={"target": str(target), "error": str(exc)},
            )
        )
    return Ok(parent)


async def _run_clone(args: list[str], target: Path, options: GitOptions) -> Result[None, GitError]:
    match _prepare_parent(target):
        case Err(err):
            return Err(err)
        case Ok(parent):
            pass
    result = await exec_git(_clone_args(args), cwd=parent, opts=options)
    return result.map(lambda _: None)


async def checkout(path: Path | str, committish: str, opts: Any = None) -> Result[None, GitError]:
    """Check out committish in the working tree at path.

    Args:
        path: Repository working tree
        committish: Branch, tag or commit
        opts: Options object, normalized with check_options

    Returns:
        Ok(None), or Err(GitProcessError) when git checkout fails
    """
    result = await exec_git(["checkout", committish], cwd=Path(path), opts=check_options(opts))
    return result.map(lambda _: None)


async def update_submodules(path: Path | str, opts: Any = None) -> Result[None, GitError]:
    """Initialize and update submodules recursively, quietly."""
    result = await exec_git(
        ["submodule", "update", "-q", "--init", "--recursive"],
        cwd=Path(path),
        opts=check_options(opts),
    )
    return result.map(lambda _: None)


async def head_sha(path: Path | str, opts: Any = None) -> Result[str, GitError]:
    """Return the commit sha HEAD points at in the working tree at path.

    Args:
        path: Repository working tree
        opts: Options object, normalized with check_options

    Returns:
        Ok(sha) with surrounding whitespace stripped, or the git failure
    """
    match await exec_git(
        ["rev-parse", "--revs-only", "HEAD"], cwd=Path(path), opts=check_options(opts)
    ):
        case Ok(output):
            return Ok(output.stdout.strip())
        case Err(err):
            return Err(err)


async def clone(
    repo: str, committish: str, target: Path | str, opts: Any = None
) -> Result[str, GitError]:
    """Full clone of ``repo`` into ``target`` checked out at ``committish``.

    Args:
        repo: URL or path understood by ``git clone``
        committish: Branch, tag or commit to check out after cloning
        target: Destination directory (must not exist or be empty)
        opts: Options object, normalized with check_options

    Returns:
        Ok(sha of HEAD after checkout), or the first step's Err
    """
    options = check_options(opts)
    target = Path(target).expanduser().absolute()
    logger.debug("Cloning %s into %s at %s", repo, target, committish)

    match await _run_clone(["clone", "-q", repo, str(target)], target, options):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    match await checkout(target, committish, options):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    match await update_submodules(target, options):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    return await head_sha(target, options)


async def shallow(
    repo: str, branch: str, target: Path | str, opts: Any = None
) -> Result[str, GitError]:
    """Depth-1 clone of a single branch into ``target``.

    Only branch (or tag) names work here; arbitrary commits cannot be
    fetched by ``git clone -b``.

    Returns:
        Ok(sha of the cloned HEAD), or the first step's Err
    """
    options = check_options(opts)
    target = Path(target).expanduser().absolute()
    logger.debug("Shallow cloning %s#%s into %s", repo, branch, target)

    args = ["clone", "--depth=1", "-q", "-b", branch, repo, str(target)]
    match await _run_clone(args, target, options):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    match await update_submodules(target, options):
        case Err(err):
            return Err(err)
        case Ok(_):
            pass

    return await head_sha(target, options)


__all__ = [
    "checkout",
    "clone",
    "head_sha",
    "shallow",
    "update_submodules",
]
