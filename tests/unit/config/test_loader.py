"""Tests for layered config loading."""

import json
from pathlib import Path

import pytest

from clipstash.config.loader import load_config
from clipstash.core.errors import ConfigError


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ~ at an empty temporary home directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("USERPROFILE", str(home_dir))
    return home_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    project_dir = tmp_path / "project"
    project_dir.mkdir()
    return project_dir


def write_layer(root: Path, data: dict) -> Path:
    layer_dir = root / ".clipstash"
    layer_dir.mkdir(exist_ok=True)
    path = layer_dir / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLayeredLoading:
    def test_shipped_defaults_without_any_config(self, home: Path, project: Path) -> None:
        config = load_config(cwd=project)

        assert config.history.max_history_count == 500
        assert config.history.retention_days == 30
        assert config.history.deduplicate_consecutive is True
        assert config.capture.poll_interval == 0.5
        assert config.capture.excluded_bundle_ids == set()
        assert config.search.max_results == 100
        assert config.storage.db_path is None

    def test_global_layer_replaces_defaults(self, home: Path, project: Path) -> None:
        write_layer(home, {"history": {"retention_days": 7}})

        config = load_config(cwd=project)

        assert config.history.retention_days == 7
        # Model defaults fill in what the global layer omits
        assert config.history.max_history_count == 500

    def test_project_layer_overrides_global(self, home: Path, project: Path) -> None:
        write_layer(home, {"history": {"retention_days": 7, "max_history_count": 50}})
        write_layer(project, {"history": {"retention_days": 1}})

        config = load_config(cwd=project)

        assert config.history.retention_days == 1
        assert config.history.max_history_count == 50

    def test_invalid_json_is_config_error(self, home: Path, project: Path) -> None:
        layer = write_layer(project, {})
        layer.write_text("{broken", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            load_config(cwd=project)

        assert "Invalid JSON" in exc_info.value.message

    def test_unknown_key_is_config_error(self, home: Path, project: Path) -> None:
        write_layer(project, {"history": {"max_items": 5}})

        with pytest.raises(ConfigError) as exc_info:
            load_config(cwd=project)

        assert "validation failed" in exc_info.value.message

    def test_out_of_range_value_is_config_error(self, home: Path, project: Path) -> None:
        write_layer(project, {"history": {"max_history_count": 0}})

        with pytest.raises(ConfigError):
            load_config(cwd=project)


class TestExplicitPath:
    def test_explicit_path_skips_layers(self, home: Path, project: Path, tmp_path: Path) -> None:
        write_layer(project, {"history": {"retention_days": 1}})
        explicit = tmp_path / "explicit.json"
        explicit.write_text(json.dumps({"search": {"max_results": 5}}), encoding="utf-8")

        config = load_config(explicit, cwd=project)

        assert config.search.max_results == 5
        assert config.history.retention_days == 30

    def test_missing_explicit_path_is_config_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.json")
