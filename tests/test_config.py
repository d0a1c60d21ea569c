"""Tests for settings loading and validation."""

from __future__ import annotations

import pytest

from quotelink.config import CONFIG_ENV_VAR, ConfigError, Settings
from quotelink.matching.normalize import NormalizationPolicy


class TestDefaults:
    """Default settings."""

    def test_defaults(self):
        settings = Settings()
        assert settings.segment_delimiter == " & "
        assert settings.min_quote_length == 2
        assert settings.palette_size == 10
        assert settings.ellipsis == "..."
        assert settings.normalization == NormalizationPolicy()

    def test_load_without_env(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert Settings.load() == Settings()


class TestFromDict:
    """Tests for Settings.from_dict()."""

    def test_overrides(self):
        settings = Settings.from_dict(
            {"palette_size": 6, "normalization": {"strip_diacritics": True}}
        )
        assert settings.palette_size == 6
        assert settings.normalization.strip_diacritics
        assert settings.normalization.case_fold

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="Unknown setting"):
            Settings.from_dict({"colour_count": 3})

    def test_bad_normalization_key(self):
        with pytest.raises(ConfigError, match="Invalid normalization"):
            Settings.from_dict({"normalization": {"fold_case": True}})

    def test_normalization_must_be_mapping(self):
        with pytest.raises(ConfigError):
            Settings.from_dict({"normalization": "loose"})

    @pytest.mark.parametrize(
        "data",
        [
            {"segment_delimiter": "  "},
            {"min_quote_length": 0},
            {"palette_size": 0},
            {"debounce_seconds": -1},
            {"log_level": "LOUD"},
            {"log_level": 10},
        ],
    )
    def test_validation(self, data):
        with pytest.raises(ConfigError):
            Settings.from_dict(data)

    def test_log_level_case_insensitive(self):
        assert Settings.from_dict({"log_level": "debug"}).log_level == "debug"


class TestFromYaml:
    """Tests for YAML loading."""

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "quotelink.yaml"
        path.write_text(
            "ellipsis: '…'\nnormalization:\n  strip_diacritics: true\n",
            encoding="utf-8",
        )
        settings = Settings.from_yaml(path)
        assert settings.ellipsis == "…"
        assert settings.normalization.strip_diacritics

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert Settings.from_yaml(path) == Settings()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            Settings.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            Settings.from_yaml(tmp_path / "missing.yaml")

    def test_load_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "quotelink.yaml"
        path.write_text("palette_size: 4\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert Settings.load().palette_size == 4
