"""Tests for core/config.py."""

from __future__ import annotations

from pathlib import Path

from assurance.core.config import (
    default_review_period,
    deep_merge,
    get_effective_config,
    load_project_config,
    review_horizon_days,
)


def _write_config(project: Path, text: str) -> None:
    config_dir = project / ".assurance"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.yaml").write_text(text, encoding="utf-8")


class TestDeepMerge:
    def test_simple_merge(self):
        result = deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"review": {"upcoming_horizon_days": 30, "default_period_months": 12}}
        result = deep_merge(base, {"review": {"upcoming_horizon_days": 14}})
        assert result["review"]["upcoming_horizon_days"] == 14
        assert result["review"]["default_period_months"] == 12

    def test_arrays_replaced(self):
        result = deep_merge({"tags": ["a", "b"]}, {"tags": ["c"]})
        assert result["tags"] == ["c"]

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base["a"]["b"] == 1


class TestLoadProjectConfig:
    def test_loads_yaml(self, tmp_path: Path):
        _write_config(tmp_path, "review:\n  upcoming_horizon_days: 14\n")
        assert load_project_config(tmp_path) == {"review": {"upcoming_horizon_days": 14}}

    def test_missing_config_returns_empty(self, tmp_path: Path):
        assert load_project_config(tmp_path) == {}

    def test_empty_config_returns_empty(self, tmp_path: Path):
        _write_config(tmp_path, "")
        assert load_project_config(tmp_path) == {}

    def test_bom_is_stripped(self, tmp_path: Path):
        config_dir = tmp_path / ".assurance"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_bytes(b"\xef\xbb\xbfoutput:\n  format: json\n")
        assert load_project_config(tmp_path)["output"]["format"] == "json"

    def test_invalid_yaml_warns(self, tmp_path: Path, caplog):
        _write_config(tmp_path, "review: [unclosed\n")
        assert load_project_config(tmp_path) == {}
        assert "Ignoring" in caplog.text

    def test_non_mapping_ignored(self, tmp_path: Path):
        _write_config(tmp_path, "- just\n- a list\n")
        assert load_project_config(tmp_path) == {}


class TestEffectiveConfig:
    def test_defaults(self):
        config = get_effective_config()
        assert review_horizon_days(config) == 30
        assert default_review_period(config) == 12
        assert config["output"]["format"] == "table"
        assert "_project_path" not in config

    def test_project_overrides_defaults(self, tmp_path: Path):
        _write_config(tmp_path, "review:\n  default_period_months: 6\n")
        config = get_effective_config(tmp_path)
        assert default_review_period(config) == 6
        assert review_horizon_days(config) == 30
        assert config["_project_path"] == str(tmp_path)

    def test_explicit_overrides_win(self, tmp_path: Path):
        _write_config(tmp_path, "review:\n  upcoming_horizon_days: 14\n")
        config = get_effective_config(tmp_path, {"review": {"upcoming_horizon_days": 7}})
        assert review_horizon_days(config) == 7

    def test_defaults_not_mutated(self):
        get_effective_config(overrides={"review": {"upcoming_horizon_days": 1}})
        assert review_horizon_days(get_effective_config()) == 30
