from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from gitrevs.core.config import (
    AppConfig,
    _detect_env_overrides,
    get_config,
    load_config,
)


def test_defaults_when_file_missing(tmp_path: Path) -> None:
    config, result = load_config(config_path=tmp_path / "missing.toml")

    assert isinstance(config, AppConfig)
    assert config.cache.max_entries == 100
    assert config.cache.ttl_seconds == 300
    assert result.file_loaded is False
    assert result.error is None


def test_reads_toml(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.write_text('log_level = "DEBUG"\n\n[cache]\nmax_entries = 5\nttl_seconds = 12.5\n')

    config, result = load_config(config_path=path)

    assert result.file_loaded is True
    assert config.log_level == "DEBUG"
    assert config.cache.max_entries == 5
    assert config.cache.ttl_seconds == 12.5


def test_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.json"
    path.write_text(json.dumps({"git": {"long_paths": True, "template_root": str(tmp_path)}}))

    config, _ = load_config(config_path=path)

    assert config.git.long_paths is True
    assert config.git.template_root == tmp_path


def test_syntax_error_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.write_text("[cache\nmax_entries = ")

    config, result = load_config(config_path=path)

    assert config.cache.max_entries == 100
    assert result.error is not None
    assert "Syntax error" in result.error


def test_non_mapping_root_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.json"
    path.write_text("[1, 2, 3]")

    _, result = load_config(config_path=path)

    assert result.error is not None
    assert "must be a mapping" in result.error


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.write_text("[cache]\nmax_entries = 0\n")

    config, result = load_config(config_path=path)

    assert result.error is not None
    assert config.cache.max_entries == 100


def test_env_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.write_text("[cache]\nmax_entries = 5\n")

    config, result = load_config(
        config_path=path, env={"GITREVS_CACHE__MAX_ENTRIES": "9", "GITREVS_LOG_LEVEL": "WARNING"}
    )

    assert config.cache.max_entries == 9
    assert config.log_level == "WARNING"
    assert result.env_overrides == {"cache.max_entries", "log_level"}


def test_config_path_from_env(tmp_path: Path, monkeypatch: Any) -> None:
    path = tmp_path / "elsewhere.toml"
    path.write_text("[cache]\nttl_seconds = 60\n")
    monkeypatch.setenv("GITREVS_CONFIG", str(path))

    config, result = load_config()

    assert result.path == path
    assert config.cache.ttl_seconds == 60


def test_detect_env_overrides() -> None:
    env = {
        "GITREVS_CACHE__TTL_SECONDS": "10",
        "GITREVS_GIT__LONG_PATHS": "1",
        "GITREVS_UNRELATED": "x",
    }

    assert _detect_env_overrides(env) == {"cache.ttl_seconds", "git.long_paths"}


def test_get_config_is_memoized(isolate_config: Path) -> None:
    isolate_config.write_text("[cache]\nmax_entries = 3\n")

    first = get_config()
    isolate_config.write_text("[cache]\nmax_entries = 4\n")

    assert get_config() is first
    assert first.cache.max_entries == 3


def test_get_config_survives_broken_file(isolate_config: Path) -> None:
    isolate_config.write_text("not = [valid")

    assert get_config().cache.max_entries == 100


def test_undecodable_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.write_bytes(b"\xff\xfe[cache]\n")

    config, result = load_config(config_path=path)

    assert config.cache.max_entries == 100
    assert result.error is not None
    assert "Cannot read" in result.error


def test_directory_in_place_of_file(tmp_path: Path) -> None:
    path = tmp_path / "gitrevs.toml"
    path.mkdir()

    config, result = load_config(config_path=path)

    assert config.cache.ttl_seconds == 300
    assert result.error is not None


def test_get_config_survives_undecodable_file(isolate_config: Path) -> None:
    isolate_config.write_bytes(b"\xff\xfe")

    assert get_config().cache.max_entries == 100
