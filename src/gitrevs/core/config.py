"""Library configuration management.

Handles loading and validating configuration from multiple sources:
    - TOML/JSON config files
    - Environment variables (GITREVS_* prefix)
    - Default values

Key components:
    - AppConfig: Main configuration model
    - load_config(): Safe config loading with fallback
    - get_config(): Process-wide memoized configuration
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from gitrevs.core.console import get_logger
from gitrevs.core.result import ConfigurationError

logger = get_logger(__name__)

CONFIG_ENV_VAR = "GITREVS_CONFIG"


class CacheConfig(BaseModel):
    """Remote reference cache bounds."""

    max_entries: int = Field(default=100, ge=1, description="Maximum cached repositories.")
    ttl_seconds: float = Field(
        default=5 * 60.0, gt=0, description="Seconds before a cached listing expires."
    )


class GitConfig(BaseModel):
    """Settings for spawned git processes."""

    template_root: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory under which per-process git template dirs are named.",
    )
    long_paths: bool = Field(
        default_factory=lambda: sys.platform == "win32",
        description="Pass core.longpaths=true when cloning.",
    )


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


class AppConfig(BaseSettings):
    """Library-wide configuration with nested sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="GITREVS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    cache: CacheConfig = Field(default_factory=CacheConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    log_level: str = Field(default="INFO", description="Log level for gitrevs output.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


def _resolve_config_path(config_path: Path | None, env_vars: Mapping[str, str]) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or (Path.home() / ".gitrevs.toml")
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        if not path.exists():
            return {}
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot read {path}: {exc}", context={"path": str(path)}
        ) from exc

    suffix = path.suffix.lower()
    parser = json.loads if suffix == ".json" else tomllib.loads

    try:
        data = parser(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(
            f"Syntax error in {path}: {exc}", context={"path": str(path)}
        ) from exc

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config root in {path} must be a mapping.", context={"path": str(path)}
        )

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    """Detect which fields are overridden by environment variables.

    For nested models, detects vars like GITREVS_CACHE__TTL_SECONDS.
    """
    prefix = AppConfig.model_config.get("env_prefix", "")
    delimiter = AppConfig.model_config.get("env_nested_delimiter", "__")
    overrides: set[str] = set()

    nested_models: dict[str, type[BaseModel]] = {
        "cache": CacheConfig,
        "git": GitConfig,
    }

    for group_name, model_cls in nested_models.items():
        for field in model_cls.model_fields:
            env_key = f"{prefix}{group_name}{delimiter}{field}".upper()
            if env_key in env_vars:
                overrides.add(f"{group_name}.{field}")

    if f"{prefix}LOG_LEVEL".upper() in env_vars:
        overrides.add("log_level")

    return overrides


def load_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[AppConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except ConfigurationError as exc:
        error = str(exc)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    try:
        with context_manager:
            config = AppConfig(**file_data)
    except ValidationError as exc:
        error = str(exc)
        config = AppConfig.model_construct(
            cache=CacheConfig(), git=GitConfig(), log_level="INFO"
        )

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loaded once."""
    config, result = load_config()
    if result.error:
        logger.warning("Ignoring invalid gitrevs config %s: %s", result.path, result.error)
    return config


__all__ = [
    "AppConfig",
    "CacheConfig",
    "ConfigLoadResult",
    "GitConfig",
    "get_config",
    "load_config",
]
