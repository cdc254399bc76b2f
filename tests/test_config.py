"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from briefly.config import ClusteringConfig, Config, ConfigModel, load_config, save_config


class TestLoadConfig:
    """Tests for load_config()."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yaml")

        assert config.cache.content_ttl_hours == 24
        assert config.cache.summary_ttl_days == 7
        assert config.llm.embedding_dimensions == 768
        assert config.clustering.similarity_threshold == 0.7
        assert config.clustering.max_iterations == 50
        assert config.summarizer.max_retries == 2
        assert config.narrative.top_articles == 3

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        save_config(ConfigModel(pipeline={"max_concurrent": 5, "themes": ["AI"]}), path)

        config = load_config(path)

        assert config.pipeline.max_concurrent == 5
        assert config.pipeline.themes == ["AI"]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == ConfigModel()

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("pipeline: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("clustering:\n  max_k: 9\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_config(path)


class TestConfigModels:
    """Tests for section validation."""

    def test_cluster_range_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError):
            ClusteringConfig(min_k=4, max_k=3)

    def test_concurrency_bounds(self) -> None:
        with pytest.raises(ValidationError):
            ConfigModel(pipeline={"max_concurrent": 0})


class TestConfig:
    """Tests for the Config manager."""

    def test_api_key_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert Config(config=ConfigModel()).get_llm_config()["api_key"] == "sk-test"

    def test_explicit_api_key_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        config = Config(config=ConfigModel(llm={"api_key": "sk-file"}))
        assert config.get_llm_config()["api_key"] == "sk-file"

    def test_db_password_from_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("BRIEFLY_DB_PASSWORD", "secret")
        config = Config(config=ConfigModel(postgres={"password_env": "BRIEFLY_DB_PASSWORD"}))
        assert config.get_db_config()["password"] == "secret"
