"""
Result types and error hierarchy for gitrevs.

This module provides:
1. Result[T, E] type for explicit error handling
2. The git error hierarchy, each error tagged with a machine-checkable ``code``

Usage:
    from gitrevs.core.result import Ok, Err, Result, GitError

    async def head(path: Path) -> Result[str, GitError]:
        ...

    match await head(path):
        case Ok(sha):
            print(sha)
        case Err(err):
            print(err.code, err)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, ClassVar, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=Exception)
F = TypeVar("F", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply a function to the contained value."""
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[E], F]) -> Ok[T]:
        return self

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain operations that may fail."""
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the contained error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[T], U]) -> Err[E]:
        return self

    def map_err(self, fn: Callable[[E], F]) -> Err[F]:
        """Apply a function to the contained error."""
        return Err(fn(self.error))

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Err[E]:
        """Short-circuit for Err - returns self unchanged."""
        return self


Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class GitRevsError(Exception):
    """Base exception for all gitrevs errors.

    Carries a human-readable message plus a ``context`` mapping with the
    structured details (command, cwd, stderr, ...) needed to diagnose it.
    """

    code: ClassVar[str] = "EGITREVS"

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationError(GitRevsError):
    """Raised for configuration issues.

    Examples:
    - Config file parse errors
    - Config root that is not a mapping
    """

    code = "ECONFIG"


class GitError(GitRevsError):
    """Base class for failures talking to the git binary."""

    code = "EGIT"


class GitNotFoundError(GitError):
    """No git executable could be located on the search path."""

    code = "ENOGIT"


class GitProcessError(GitError):
    """A git invocation could not start or exited non-zero.

    The message embeds the failing command line and captured stderr.
    """

    code = "EGITPROC"

    @property
    def returncode(self) -> int | None:
        value = self.context.get("returncode")
        return value if isinstance(value, int) else None

    @property
    def stderr(self) -> str:
        return str(self.context.get("stderr", ""))


__all__ = [
    "ConfigurationError",
    "Err",
    "GitError",
    "GitNotFoundError",
    "GitProcessError",
    "GitRevsError",
    "Ok",
    "Result",
]
