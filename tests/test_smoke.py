from __future__ import annotations

import gitrevs
from gitrevs import __version__


def test_version() -> None:
    assert __version__ == "0.1.0"


def test_public_api_is_exported() -> None:
    for name in gitrevs.__all__:
        assert hasattr(gitrevs, name), name


def test_public_operations_are_coroutines() -> None:
    import inspect

    for fn in (gitrevs.revs, gitrevs.clone, gitrevs.shallow):
        assert inspect.iscoroutinefunction(fn)


def test_submodules_are_not_shadowed_by_exports() -> None:
    import importlib
    import types

    import gitrevs.git

    for name in ("cache", "env", "options", "process", "resolver", "workflow"):
        module = importlib.import_module(f"gitrevs.git.{name}")
        assert isinstance(module, types.ModuleType)
        assert getattr(gitrevs.git, name) is module


def test_public_git_functions_are_documented() -> None:
    import inspect

    import gitrevs.git

    for name in gitrevs.git.__all__:
        obj = getattr(gitrevs.git, name)
        if inspect.isfunction(obj):
            assert inspect.getdoc(obj), name
    for method in (
        gitrevs.git.RevsResolver.resolve,
        gitrevs.git.TTLCache.put,
        gitrevs.git.TTLCache.invalidate,
        gitrevs.git.InFlight.run,
    ):
        assert inspect.getdoc(method), method.__qualname__
