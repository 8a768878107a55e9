"""Tests for user configuration persistence."""

import json
from unittest.mock import patch

import pytest

from residuescope.config.user_config import (
    AnalysisConfig,
    UserConfig,
    save_config,
    load_config,
    clear_config,
)


@pytest.fixture
def config_file(tmp_path):
    """Redirect the config location into a temporary directory."""
    path = tmp_path / "config.json"
    with patch("residuescope.config.user_config.FULL_CONFIG_FILE", path), \
         patch("residuescope.config.user_config.CONFIG_DIR", tmp_path):
        yield path


class TestAnalysisConfig:
    """Tests for AnalysisConfig dataclass."""

    def test_defaults(self):
        ac = AnalysisConfig()
        assert ac.proximity_threshold == 5.0
        assert ac.filter_enabled is True
        assert ac.color_scheme == "spectrum"


class TestUserConfig:
    def test_defaults(self):
        uc = UserConfig()
        assert isinstance(uc.analysis, AnalysisConfig)
        assert uc.last_folder is None
        assert uc.window_geometry is None


class TestConfigPersistence:
    """Tests for save_config / load_config round-trip."""

    def test_save_load_roundtrip(self, config_file):
        """Test that save followed by load preserves all fields."""
        config = UserConfig(
            analysis=AnalysisConfig(
                proximity_threshold=3.5,
                filter_enabled=False,
                color_scheme="chain",
            ),
            last_folder="/home/user/structures",
            window_geometry={"x": 100, "y": 200, "w": 1024, "h": 768},
        )

        assert save_config(config) is True
        assert config_file.exists()

        loaded = load_config()

        assert loaded.analysis.proximity_threshold == 3.5
        assert loaded.analysis.filter_enabled is False
        assert loaded.analysis.color_scheme == "chain"
        assert loaded.last_folder == "/home/user/structures"
        assert loaded.window_geometry == {"x": 100, "y": 200, "w": 1024, "h": 768}

    def test_load_missing_file_returns_defaults(self, config_file):
        config = load_config()

        assert config.analysis.proximity_threshold == 5.0
        assert config.last_folder is None

    def test_load_corrupt_file_returns_defaults(self, config_file):
        """Test that corrupt JSON returns defaults."""
        config_file.write_text("not valid json {{{")

        config = load_config()

        assert isinstance(config, UserConfig)
        assert config.analysis.color_scheme == "spectrum"

    @pytest.mark.parametrize("stored, expected", [(0.2, 1.0), (12, 5.0), ("far", 5.0), (True, 5.0)])
    def test_threshold_sanitized(self, config_file, stored, expected):
        config_file.write_text(json.dumps({"analysis": {"proximity_threshold": stored}}))

        assert load_config().analysis.proximity_threshold == expected

    def test_missing_analysis_section(self, config_file):
        config_file.write_text(json.dumps({"last_folder": "/data"}))

        config = load_config()

        assert config.analysis == AnalysisConfig()
        assert config.last_folder == "/data"

    def test_save_creates_directory(self, tmp_path):
        """Test that save_config creates the config directory."""
        nested = tmp_path / "a" / "b"
        path = nested / "config.json"
        with patch("residuescope.config.user_config.FULL_CONFIG_FILE", path), \
             patch("residuescope.config.user_config.CONFIG_DIR", nested):
            result = save_config(UserConfig())
        assert result is True
        assert path.exists()


class TestClearConfig:
    def test_removes_file(self, config_file):
        save_config(UserConfig())

        assert clear_config() is True
        assert not config_file.exists()

    def test_missing_file_is_fine(self, config_file):
        assert clear_config() is True
