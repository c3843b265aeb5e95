"""Tests for configuration module."""

from pathlib import Path

import pytest

from habitlens.config import (
    Config,
    get_config,
    get_default_config,
    load_config,
    set_config,
)


def _write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


class TestDefaultConfig:
    """Tests for default configuration when no file exists."""

    def test_default_values(self):
        config = get_default_config()
        assert isinstance(config, Config)
        assert config.storage.db_path == "~/.habitlens/db.sqlite"
        assert config.llm.backend == ""
        assert config.llm.timeout == 120
        assert config.analysis.min_tag_samples == 3
        assert config.analysis.max_tags == 3
        assert config.logging.level == "WARNING"

    def test_missing_file_returns_defaults(self, temp_dir):
        assert load_config(temp_dir / "missing.toml") == get_default_config()

    def test_db_path_is_expanded(self):
        path = get_default_config().storage.resolved_db_path()
        assert "~" not in str(path)
        assert path.name == "db.sqlite"


class TestLoadConfig:
    """Tests for loading and merging TOML files."""

    def test_full_config(self, temp_dir):
        path = _write(
            temp_dir / "config.toml",
            """
[storage]
db_path = "/data/habits.sqlite"

[llm]
backend = "gemini"
timeout = 30

[analysis]
min_tag_samples = 5
max_tags = 2

[logging]
level = "debug"
""",
        )
        config = load_config(path)
        assert config.storage.db_path == "/data/habits.sqlite"
        assert config.llm.backend == "gemini"
        assert config.llm.timeout == 30
        assert config.analysis.min_tag_samples == 5
        assert config.analysis.max_tags == 2
        assert config.logging.level == "DEBUG"

    def test_partial_config_merges_with_defaults(self, temp_dir):
        path = _write(temp_dir / "config.toml", '[llm]\nbackend = "claude"\n')
        config = load_config(path)
        assert config.llm.backend == "claude"
        assert config.llm.timeout == 120
        assert config.analysis.min_tag_samples == 3

    def test_unknown_keys_ignored(self, temp_dir):
        path = _write(temp_dir / "config.toml", "[llm]\nmodel = \"x\"\n[extra]\nfoo = 1\n")
        assert load_config(path) == get_default_config()

    def test_invalid_toml_returns_defaults(self, temp_dir):
        path = _write(temp_dir / "config.toml", "[llm\nbackend = ")
        assert load_config(path) == get_default_config()

    @pytest.mark.parametrize(
        "content",
        [
            "[llm]\ntimeout = 0\n",
            "[analysis]\nmin_tag_samples = 0\n",
            "[logging]\nlevel = \"LOUD\"\n",
        ],
    )
    def test_invalid_values_return_defaults(self, temp_dir, content):
        path = _write(temp_dir / "config.toml", content)
        assert load_config(path) == get_default_config()


def test_get_config_caches(monkeypatch, temp_dir):
    monkeypatch.setattr("habitlens.config.get_default_config_path", lambda: temp_dir / "none.toml")
    first = get_config()
    assert get_config() is first

    replacement = Config()
    set_config(replacement)
    assert get_config() is replacement
