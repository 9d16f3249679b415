"""Running the git binary as an asyncio subprocess.

Provides:
- exec_git: run to completion and capture output
- spawn_git: start git and hand back the live process for streaming
- collect_output: drain a spawned process's stdout/stderr until exit
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gitrevs.core.console import get_logger
from gitrevs.core.result import Err, GitError, GitProcessError, Ok, Result
from gitrevs.git.env import check_git, git_env
from gitrevs.git.options import GitOptions, check_options

logger = get_logger(__name__)


@dataclass(slots=True)
class CommandResult:
    """Captured output of a finished git invocation."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str
    cwd: Path | None = field(default=None)


def format_command(git_path: str, args: Sequence[str]) -> str:
    return " ".join([git_path, *args])


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def process_error(
    git_path: str,
    args: Sequence[str],
    *,
    returncode: int | None,
    stderr: str,
    cwd: Path | None = None,
    **extra: Any,
) -> GitProcessError:
    """Build the error for a failed invocation, embedding command and stderr."""
    command = format_command(git_path, args)
    context: dict[str, Any] = {"args": list(args), "returncode": returncode, "stderr": stderr}
    if cwd is not None:
        context["cwd"] = str(cwd)
    context.update(extra)
    message = f"Error while executing:\n{command}\n\n{stderr.strip()}"
    return GitProcessError(message, context=context)


def _spawn_kwargs(
    cwd: Path | None, options: GitOptions, env: Mapping[str, str] | None
) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "env": dict(git_env() if env is None else env),
        "stdin": asyncio.subprocess.DEVNULL,
    }
    if cwd is not None:
        kwargs["cwd"] = cwd
    if options.uid is not None:
        kwargs["user"] = options.uid
    if options.gid is not None:
        kwargs["group"] = options.gid
    return kwargs


async def spawn_git(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    opts: Any = None,
    env: Mapping[str, str] | None = None,
) -> Result[asyncio.subprocess.Process, GitError]:
    """Start git with piped stdout/stderr and return the running process.

    Fails with GitNotFoundError before spawning when no git binary exists.
    """
    options = check_options(opts)
    match check_git():
        case Err(err):
            return Err(err)
        case Ok(git_path):
            pass

    logger.debug("Running %s (cwd=%s)", format_command(git_path, args), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            git_path,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            **_spawn_kwargs(cwd, options, env),
        )
    except (OSError, OverflowError, ValueError) as exc:
        return Err(process_error(git_path, args, returncode=None, stderr=str(exc), cwd=cwd))
    return Ok(process)


async def collect_output(process: asyncio.subprocess.Process) -> tuple[int, str, str]:
    """Read stdout and stderr concurrently until the process exits."""

    async def _drain(stream: asyncio.StreamReader | None) -> bytes:
        if stream is None:
            return b""
        return await stream.read()

    stdout, stderr, returncode = await asyncio.gather(
        _drain(process.stdout), _drain(process.stderr), process.wait()
    )
    return returncode, _decode(stdout), _decode(stderr)


async def exec_git(
    args: Sequence[str],
    *,
    cwd: Path | None = None,
    opts: Any = None,
    env: Mapping[str, str] | None = None,
) -> Result[CommandResult, GitError]:
    """Run git to completion, returning captured output or a GitProcessError."""
    match await spawn_git(args, cwd=cwd, opts=opts, env=env):
        case Err(err):
            return Err(err)
        case Ok(process):
            pass

    stdout_bytes, stderr_bytes = await process.communicate()
    returncode = process.returncode or 0
    stdout = _decode(stdout_bytes)
    stderr = _decode(stderr_bytes)
    if returncode != 0:
        git_path = check_git().unwrap()
        return Err(process_error(git_path, args, returncode=returncode, stderr=stderr, cwd=cwd))

    return Ok(
        CommandResult(
            args=list(args), returncode=returncode, stdout=stdout, stderr=stderr, cwd=cwd
        )
    )


__all__ = [
    "CommandResult",
    "collect_output",
    "exec_git",
    "format_command",
    "process_error",
    "spawn_git",
]
