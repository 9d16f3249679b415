"""Normalization of the options object accepted by every git operation."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

# Exclusive bound for uid_t / gid_t; the all-ones value means "unchanged".
MAX_ID = 2**32 - 1


def _integral(value: float) -> int | None:
    if not math.isfinite(value) or not value.is_integer():
        return None
    return int(value)


def _coerce_id(value: Any) -> int | None:
    """Return a usable process id, or None when the value should be ignored.

    Zero is ignored along with negatives: it means "keep the current user".
    Ids that do not fit a 32-bit uid_t/gid_t are ignored as well.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        number: int | None = value
    elif isinstance(value, float):
        number = _integral(value)
    elif isinstance(value, str):
        try:
            number = _integral(float(value.strip()))
        except ValueError:
            return None
    else:
        return None
    if number is None or not 0 < number < MAX_ID:
        return None
    return number


class GitOptions(BaseModel):
    """Credential overrides applied to spawned git processes."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    uid: int | None = None
    gid: int | None = None

    @field_validator("uid", "gid", mode="before")
    @classmethod
    def _ignore_invalid(cls, v: Any) -> int | None:
        return _coerce_id(v)


DEFAULT_OPTIONS = GitOptions()


def check_options(opts: Any = None) -> GitOptions:
    """Return well-formed options for any input; never raises.

    Accepts None, a GitOptions, a mapping, or an object exposing ``uid`` /
    ``gid`` attributes. Anything unusable falls back to the defaults.
    """
    if opts is None:
        return DEFAULT_OPTIONS
    if isinstance(opts, GitOptions):
        return opts
    if isinstance(opts, Mapping):
        raw = {"uid": opts.get("uid"), "gid": opts.get("gid")}
    else:
        raw = {"uid": getattr(opts, "uid", None), "gid": getattr(opts, "gid", None)}
    return GitOptions.model_validate(raw)


__all__ = ["DEFAULT_OPTIONS", "GitOptions", "check_options"]
