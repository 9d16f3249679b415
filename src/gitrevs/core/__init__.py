"""Core shared infrastructure for gitrevs.

This package contains foundational utilities:
    - config: Library configuration management
    - console: Rich logging setup
    - result: Result type and error hierarchy
"""

from __future__ import annotations

from . import config, console, result

__all__ = ["config", "console", "result"]
