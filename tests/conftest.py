from __future__ import annotations

import asyncio
import os
import shutil
import subprocess
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gitrevs.core import config as core_config  # noqa: E402
from gitrevs.git import env as git_env_module  # noqa: E402
from gitrevs.git import resolver as git_resolver  # noqa: E402

HAS_GIT = shutil.which("git") is not None


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: tests that run the real git binary",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests when git is not installed."""
    if HAS_GIT:
        return
    skip_no_git = pytest.mark.skip(reason="git binary not available")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_no_git)


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: Any) -> Iterator[Path]:
    """Point config to a temp path and reset memoized process state."""
    cfg_path = tmp_path / "gitrevs.toml"
    monkeypatch.setenv("GITREVS_CONFIG", str(cfg_path))
    core_config.get_config.cache_clear()
    git_env_module.find_git.cache_clear()
    git_env_module.git_env.cache_clear()
    git_resolver.reset_default_resolver()
    yield cfg_path
    core_config.get_config.cache_clear()
    git_env_module.find_git.cache_clear()
    git_env_module.git_env.cache_clear()
    git_resolver.reset_default_resolver()


def _fake_process(
    stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, delay: float = 0.0
) -> MagicMock:
    """Fake asyncio subprocess supporting communicate() and streamed reads."""
    process = MagicMock()
    process.returncode = returncode

    async def _read_stdout() -> bytes:
        if delay:
            await asyncio.sleep(delay)
        return stdout

    async def _read_stderr() -> bytes:
        return stderr

    process.stdout = MagicMock()
    process.stdout.read = AsyncMock(side_effect=_read_stdout)
    process.stderr = MagicMock()
    process.stderr.read = AsyncMock(side_effect=_read_stderr)
    process.wait = AsyncMock(return_value=returncode)
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    return process


def _run_git(*args: str, cwd: Path) -> str:
    """Run git synchronously for fixture setup (not part of SUT)."""
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.email=test@test.com",
            "-c",
            "user.name=Test User",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
        env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
    )
    return completed.stdout.strip()


@pytest.fixture
def origin_repo(tmp_path: Path) -> Path:
    """A local repository on branch ``main`` with a ``v1.0.0`` tag and a later commit."""
    repo_path = tmp_path / "origin"
    repo_path.mkdir()
    _run_git("init", "-q", cwd=repo_path)
    _run_git("symbolic-ref", "HEAD", "refs/heads/main", cwd=repo_path)

    (repo_path / "README.md").write_text("# Origin\n")
    _run_git("add", ".", cwd=repo_path)
    _run_git("commit", "-q", "-m", "Initial commit", cwd=repo_path)
    _run_git("tag", "-a", "v1.0.0", "-m", "release 1.0.0", cwd=repo_path)

    (repo_path / "CHANGELOG.md").write_text("- second\n")
    _run_git("add", ".", cwd=repo_path)
    _run_git("commit", "-q", "-m", "Second commit", cwd=repo_path)
    return repo_path


@pytest.fixture
def make_process() -> Callable[..., MagicMock]:
    return _fake_process


@pytest.fixture
def git() -> Callable[..., str]:
    return _run_git
