"""
Unit tests for ConfigManager.

Tests the hierarchical configuration loading system and dataclass-based config.
"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from dj_metadata.core.config_manager import (
    ConfigManager,
    DJMetadataConfig,
    FingerprintConfig,
    SampleConfig,
    SeratoConfig,
    TagReaderConfig,
    UIConfig,
    get_config_manager,
)


class TestConfigDataclasses:
    """Test configuration dataclasses."""

    def test_tag_reader_config_defaults(self):
        """Test TagReaderConfig default values."""
        config = TagReaderConfig()
        assert config.tag_types == ['id3v2', 'id3v1', 'lyrics3']
        assert config.min_size == 256
        assert config.max_size == 100 * 1024 * 1024
        assert config.only_first is True
        assert config.apply_unsync is True

    def test_codec_config_defaults(self):
        """Test Serato, sample and fingerprint defaults."""
        assert SeratoConfig().sort_cues is True
        assert SampleConfig().key_table == "vdj8"
        assert SampleConfig().drop_path is False
        fingerprint = FingerprintConfig()
        assert fingerprint.algorithm == "offset"
        assert fingerprint.max_offset == 0
        assert fingerprint.match_threshold == 0.9

    def test_ui_config_defaults(self):
        """Test UIConfig default values."""
        config = UIConfig()
        assert config.log_level == "INFO"
        assert config.color_output is True
        assert config.verbose_errors is False

    def test_root_config_initialization(self):
        """Test DJMetadataConfig creates every section."""
        config = DJMetadataConfig()
        assert isinstance(config.tags, TagReaderConfig)
        assert isinstance(config.serato, SeratoConfig)
        assert isinstance(config.sample, SampleConfig)
        assert isinstance(config.fingerprint, FingerprintConfig)
        assert isinstance(config.ui, UIConfig)


class TestConfigManager:
    """Test ConfigManager functionality."""

    def test_config_manager_initialization(self, config_manager, tmp_path):
        """Test ConfigManager initialization."""
        assert config_manager.project_root == tmp_path / "project"
        assert config_manager.config_dir == tmp_path / "project" / "config"
        assert config_manager.user_config_dir == tmp_path / "user"

    def test_load_default_config(self, config_manager):
        """Test loading default configuration."""
        config = config_manager.load_config()

        assert isinstance(config, DJMetadataConfig)
        assert config.fingerprint.algorithm == "offset"
        assert config.tags.only_first is True

    def test_default_json_picked_up(self, config_manager):
        """Test config/default.json is read without naming it."""
        (config_manager.config_dir / "default.json").write_text(json.dumps({"serato": {"sort_cues": False}}))
        assert config_manager.load_config().serato.sort_cues is False

    def test_load_project_config(self, config_manager):
        """Test loading project-specific configuration."""
        project_config = {
            "tags": {"only_first": False, "tag_types": ["id3v2"]},
            "fingerprint": {"max_offset": 80},
        }
        (config_manager.config_dir / "test.json").write_text(json.dumps(project_config))

        config = config_manager.load_config(project_config="test.json")

        assert config.tags.only_first is False
        assert config.tags.tag_types == ["id3v2"]
        assert config.fingerprint.max_offset == 80
        # Other values should be defaults
        assert config.fingerprint.match_threshold == 0.9

    def test_load_user_config(self, config_manager):
        """Test loading user configuration."""
        config_manager.user_config_dir.mkdir(parents=True)
        user_config = {"ui": {"log_level": "DEBUG", "color_output": False}}
        (config_manager.user_config_dir / "settings.json").write_text(json.dumps(user_config))

        config = config_manager.load_config()

        assert config.ui.log_level == "DEBUG"
        assert config.ui.color_output is False

    def test_config_precedence(self, config_manager):
        """Test configuration loading precedence."""
        project_config = {"fingerprint": {"match_threshold": 0.5, "max_offset": 10}}
        (config_manager.config_dir / "test.json").write_text(json.dumps(project_config))

        config_manager.user_config_dir.mkdir(parents=True)
        user_config = {"fingerprint": {"match_threshold": 0.6}, "ui": {"log_level": "WARNING"}}
        (config_manager.user_config_dir / "settings.json").write_text(json.dumps(user_config))

        config = config_manager.load_config(
            project_config="test.json",
            cli_overrides={"fingerprint": {"match_threshold": 0.7}},
        )

        # CLI should override all
        assert config.fingerprint.match_threshold == 0.7
        # User config should override project
        assert config.ui.log_level == "WARNING"
        # Project config should be used when no override
        assert config.fingerprint.max_offset == 10

    def test_unknown_keys_ignored(self, config_manager):
        """Test unknown settings do not break loading."""
        config = config_manager.load_config(cli_overrides={"sample": {"colour": "red", "drop_path": True}})
        assert config.sample.drop_path is True

    def test_save_user_settings(self, config_manager):
        """Test saving user settings."""
        assert config_manager.save_user_settings({"ui": {"log_level": "ERROR"}})
        assert config_manager.save_user_settings({"sample": {"key_table": "vdj8"}})

        saved_data = json.loads((config_manager.user_config_dir / "settings.json").read_text())
        assert saved_data["ui"]["log_level"] == "ERROR"
        assert saved_data["sample"]["key_table"] == "vdj8"

    def test_validate_config(self, config_manager):
        """Test configuration validation."""
        config = config_manager.load_config()
        assert config_manager.validate_config(config) == []

        config.fingerprint.algorithm = "fuzzy"
        config.sample.key_table = "vdj3"
        config.tags.tag_types = ['id3v2', 'ape']
        errors = config_manager.validate_config(config)

        assert any("algorithm" in error for error in errors)
        assert any("key_table" in error for error in errors)
        assert any("tag_types" in error for error in errors)

    def test_validate_thresholds(self, config_manager):
        """Test numeric range checks."""
        config = config_manager.load_config(cli_overrides={
            "fingerprint": {"match_threshold": 1.5, "max_offset": -1},
            "tags": {"min_size": 1000, "max_size": 10},
        })
        errors = config_manager.validate_config(config)
        assert len(errors) == 3

    def test_merge_configs(self, config_manager):
        """Test configuration merging logic."""
        base = {"tags": {"min_size": 256, "only_first": True}, "ui": {"log_level": "INFO"}}
        override = {"tags": {"min_size": 0}, "serato": {"sort_cues": False}}

        merged = config_manager._merge_configs(base, override)

        assert merged["tags"]["min_size"] == 0  # Overridden
        assert merged["tags"]["only_first"] is True  # Preserved
        assert merged["ui"]["log_level"] == "INFO"  # Preserved
        assert merged["serato"]["sort_cues"] is False  # New

    def test_invalid_json_handling(self, config_manager):
        """Test handling of invalid JSON in config files."""
        (config_manager.config_dir / "invalid.json").write_text("{ invalid json }")

        config = config_manager.load_config(project_config="invalid.json")
        assert config.fingerprint.algorithm == "offset"  # Default

    def test_missing_config_file(self, config_manager):
        """Test handling of missing config files."""
        config = config_manager.load_config(project_config="nonexistent.json")
        assert isinstance(config, DJMetadataConfig)

    @patch('platform.system')
    def test_user_config_dir_linux(self, mock_system, tmp_path):
        """Test Linux user config directory."""
        mock_system.return_value = "Linux"

        with patch.dict('os.environ', {'XDG_CONFIG_HOME': '/home/test/.config'}):
            manager = ConfigManager(project_root=tmp_path)
            assert manager._get_user_config_dir() == Path("/home/test/.config/dj-metadata")

    @patch('platform.system')
    def test_user_config_dir_macos(self, mock_system, tmp_path):
        """Test macOS user config directory."""
        mock_system.return_value = "Darwin"

        manager = ConfigManager(project_root=tmp_path)
        assert "Library/Application Support/dj-metadata" in str(manager._get_user_config_dir())

    def test_get_config_singleton(self):
        """Test get_config_manager singleton pattern."""
        assert get_config_manager() is get_config_manager()
