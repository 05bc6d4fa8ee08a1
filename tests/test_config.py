"""Tests for the YAML-backed configuration manager."""

from pathlib import Path

import pytest
import yaml

from config import PROJECT_ROOT, ConfigurationManager, get_config, set_config


def test_shipped_settings():
    assert get_config("editor.snap_grid") == 10
    assert get_config("editor.zoom.max") == 1.5
    assert get_config("rates.similarity_threshold") == 0.97
    assert get_config("rates.overtime_keywords") == ["overtime", "ot", "o.t"]


def test_missing_keys_fall_back_to_default():
    assert get_config("editor.nonexistent", 7) == 7
    assert get_config("editor.snap_grid.deeper", "x") == "x"


def test_instance_is_shared():
    assert ConfigurationManager() is ConfigurationManager()


def test_relative_paths_are_resolved():
    output_dir = Path(get_config("paths.output_dir"))

    assert output_dir.is_absolute()
    assert output_dir == PROJECT_ROOT / "outputs"


def test_set_creates_sections():
    set_config("rates.similarity_threshold", 0.9)
    set_config("brand.new.key", "value")

    assert get_config("rates.similarity_threshold") == 0.9
    assert get_config("brand.new.key") == "value"
    assert ConfigurationManager().overrides == {"rates.similarity_threshold": 0.9, "brand.new.key": "value"}


def test_reload_drops_runtime_overrides():
    set_config("editor.snap_grid", 5)
    ConfigurationManager().reload()

    assert get_config("editor.snap_grid") == 10


def test_section_is_a_copy():
    editor = ConfigurationManager().section("editor")
    editor["snap_grid"] = 99

    assert get_config("editor.snap_grid") == 10
    assert ConfigurationManager().section("missing") == {}


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TEMPLATE_STUDIO__EXTRACTION__ENDPOINT", "http://localhost:8080/extract")
    monkeypatch.setenv("TEMPLATE_STUDIO__EDITOR__HISTORY_LIMIT", "20")
    monkeypatch.setenv("TEMPLATE_STUDIO__OUTPUT__PDF__ENABLED", "false")
    ConfigurationManager.reset()

    assert get_config("extraction.endpoint") == "http://localhost:8080/extract"
    assert get_config("editor.history_limit") == 20
    assert get_config("output.pdf.enabled") is False


def test_alternative_settings_file(tmp_path, monkeypatch):
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"editor": {"snap_grid": 5}, "paths": {"output_dir": "out"}}), encoding="utf-8")
    monkeypatch.setenv("TEMPLATE_STUDIO_CONFIG", str(path))
    ConfigurationManager.reset()

    assert get_config("editor.snap_grid") == 5
    assert get_config("paths.output_dir") == str(PROJECT_ROOT / "out")
    assert get_config("editor.history_limit", 50) == 50


def test_missing_settings_file(tmp_path):
    ConfigurationManager.reset()
    with pytest.raises(FileNotFoundError):
        ConfigurationManager(str(tmp_path / "missing.yaml"))


def test_settings_must_be_a_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    ConfigurationManager.reset()

    with pytest.raises(yaml.YAMLError):
        ConfigurationManager(str(path))
