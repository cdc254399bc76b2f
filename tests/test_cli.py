"""Tests for the command-line interface."""

import asyncio
from pathlib import Path

import pytest
from typer.testing import CliRunner

from briefly.cache import CacheManager, MemoryCacheStore
from briefly.cli import app, common
from briefly.cli import init as init_module
from briefly.config import load_config
from briefly.ingestion import compute_content_hash
from briefly.models import ContentType, FetchedContent

runner = CliRunner()

URL = "https://example.com/story"


def cached_content() -> FetchedContent:
    text = "Original article text."
    return FetchedContent(
        url=URL,
        final_url=URL,
        content_type=ContentType.WEB,
        title="Story",
        text=text,
        content_hash=compute_content_hash(text),
    )


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    result = runner.invoke(app, ["init", "--config", str(path), "--memory"])
    assert result.exit_code == 0, result.output
    return path


class TestInit:
    """Tests for `briefly init`."""

    def test_writes_config(self, config_path: Path) -> None:
        config = load_config(config_path)
        assert config.cache.backend == "memory"
        assert config.postgres.password_env == "BRIEFLY_DB_PASSWORD"

    def test_refuses_to_overwrite(self, config_path: Path) -> None:
        result = runner.invoke(app, ["init", "--config", str(config_path)])
        assert result.exit_code == 1


class TestCacheCommands:
    """Tests for `briefly cache`."""

    @pytest.fixture
    def store(self, monkeypatch) -> MemoryCacheStore:
        """Stand in for a reachable Postgres cache that persists between commands."""
        store = MemoryCacheStore()
        monkeypatch.setattr(common, "validate_connection", lambda db_config: True)
        monkeypatch.setattr(common, "init_database", lambda db_config: None)
        monkeypatch.setattr(common, "PostgresCacheStore", lambda db_config: store)
        return store

    @pytest.fixture
    def postgres_config(self, tmp_path: Path, monkeypatch) -> Path:
        monkeypatch.setattr(init_module, "validate_connection", lambda db_config: True)
        monkeypatch.setattr(init_module, "init_database", lambda db_config: None)
        path = tmp_path / "postgres.yaml"
        result = runner.invoke(app, ["init", "--config", str(path)])
        assert result.exit_code == 0, result.output
        return path

    def test_stats(self, postgres_config: Path, store: MemoryCacheStore) -> None:
        result = runner.invoke(app, ["cache", "stats", "--config", str(postgres_config)])
        assert result.exit_code == 0, result.output
        assert "Cache Statistics" in result.output

    def test_entries_survive_between_commands(self, postgres_config: Path, store: MemoryCacheStore) -> None:
        manager = CacheManager(store)
        asyncio.run(manager.put_content(URL, cached_content()))

        cleanup = runner.invoke(app, ["cache", "cleanup", "--config", str(postgres_config)])
        assert cleanup.exit_code == 0, cleanup.output
        assert "Removed 0 expired cache entries" in cleanup.output

        clear = runner.invoke(app, ["cache", "clear", "--yes", "--config", str(postgres_config)])
        assert clear.exit_code == 0, clear.output
        assert "Removed 1 cache entries" in clear.output

    def test_in_memory_backend_is_refused(self, config_path: Path) -> None:
        for command in (["stats"], ["cleanup"], ["clear", "--yes"]):
            result = runner.invoke(app, ["cache", *command, "--config", str(config_path)])
            assert result.exit_code == 1
            assert "persistent cache" in result.output

    def test_unreachable_postgres_is_refused(self, postgres_config: Path, monkeypatch) -> None:
        monkeypatch.setattr(common, "validate_connection", lambda db_config: False)
        result = runner.invoke(app, ["cache", "stats", "--config", str(postgres_config)])
        assert result.exit_code == 1
        assert "unreachable" in result.output

    def test_default_config_uses_postgres(self, tmp_path: Path) -> None:
        assert load_config(tmp_path / "absent.yaml").cache.backend == "postgres"


class TestDigestCommand:
    """Tests for `briefly digest`."""

    def test_file_without_links_fails(self, config_path: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        links = tmp_path / "links.md"
        links.write_text("Nothing to read this week.\n")

        result = runner.invoke(app, ["digest", str(links), "--config", str(config_path)])

        assert result.exit_code == 1
        assert "No valid URLs" in result.output

    def test_missing_input_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["digest", str(tmp_path / "absent.md")])
        assert result.exit_code != 0

    def test_unreachable_postgres_falls_back_to_memory(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setattr(common, "validate_connection", lambda db_config: False)
        links = tmp_path / "links.md"
        links.write_text("Nothing to read this week.\n")

        result = runner.invoke(app, ["digest", str(links), "--config", str(tmp_path / "absent.yaml")])

        assert "in-memory cache" in result.output
        assert result.exit_code == 1
        assert "No valid URLs" in result.output
