"""Tests for configuration loading."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from navi_generator.database.config_interface import MAX_ROWS_PER_SHARD, DatabaseConfig, load_config

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "navi_database.yaml"


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self):
        config = DatabaseConfig()

        assert config.database_path == Path("navi.sqlite")
        assert config.max_rows_per_shard == MAX_ROWS_PER_SHARD == 10000
        assert config.busy_timeout_s == 30.0

    def test_repository_config_file(self):
        config = load_config(REPO_CONFIG)
        assert config == DatabaseConfig()

    def test_values_from_yaml(self, tmp_path: Path):
        path = tmp_path / "navi.yaml"
        path.write_text("database_path: out/navi.sqlite\nmax_rows_per_shard: 500\n", encoding="utf-8")

        config = load_config(path)
        assert config.database_path == Path("out/navi.sqlite")
        assert config.max_rows_per_shard == 500

    def test_empty_file_uses_defaults(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == DatabaseConfig()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("max_rows: 10\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_config(path)

    def test_threshold_must_be_positive(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(max_rows_per_shard=0)
