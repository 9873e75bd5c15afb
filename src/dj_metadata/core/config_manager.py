"""
Centralized Configuration Management

Manages all configuration sources:
- Default settings
- Project configs (config/*.json)
- User settings (~/.config/dj-metadata/)
- CLI overrides

The codecs never read configuration themselves; the values here are handed
to them by callers such as the CLI.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict
import platform

from .constants import (
    MIN_TAG_INPUT_SIZE,
    MAX_TAG_INPUT_SIZE,
    FINGERPRINT_MATCH_THRESHOLD,
)


@dataclass
class TagReaderConfig:
    """Tag container scanning configuration"""
    tag_types: list = None
    min_size: int = MIN_TAG_INPUT_SIZE
    max_size: int = MAX_TAG_INPUT_SIZE
    only_first: bool = True
    apply_unsync: bool = True

    def __post_init__(self):
        if self.tag_types is None:
            self.tag_types = ['id3v2', 'id3v1', 'lyrics3']


@dataclass
class SeratoConfig:
    """Vendor marker decoding configuration"""
    sort_cues: bool = True


@dataclass
class SampleConfig:
    """Sample container configuration"""
    key_table: str = "vdj8"
    drop_path: bool = False


@dataclass
class FingerprintConfig:
    """Fingerprint matching configuration"""
    algorithm: str = "offset"
    max_offset: int = 0
    match_threshold: float = FINGERPRINT_MATCH_THRESHOLD


@dataclass
class UIConfig:
    """User interface configuration"""
    log_level: str = "INFO"
    color_output: bool = True
    verbose_errors: bool = False


@dataclass
class DJMetadataConfig:
    """Complete configuration for DJ Metadata Toolkit"""
    tags: TagReaderConfig = None
    serato: SeratoConfig = None
    sample: SampleConfig = None
    fingerprint: FingerprintConfig = None
    ui: UIConfig = None

    def __post_init__(self):
        if self.tags is None:
            self.tags = TagReaderConfig()
        if self.serato is None:
            self.serato = SeratoConfig()
        if self.sample is None:
            self.sample = SampleConfig()
        if self.fingerprint is None:
            self.fingerprint = FingerprintConfig()
        if self.ui is None:
            self.ui = UIConfig()


_SECTIONS = {
    'tags': TagReaderConfig,
    'serato': SeratoConfig,
    'sample': SampleConfig,
    'fingerprint': FingerprintConfig,
    'ui': UIConfig,
}


class ConfigManager:
    """
    Centralized configuration manager with hierarchical loading:
    1. Default settings
    2. Project configs (config/*.json)
    3. User settings (~/.config/dj-metadata/)
    4. CLI arguments
    """

    def __init__(self, project_root: Optional[Path] = None,
                 user_config_dir: Optional[Path] = None):
        self.logger = logging.getLogger(__name__)

        # Determine project root
        if project_root is None:
            current = Path(__file__).parent
            while current != current.parent:
                if (current / "pyproject.toml").exists():
                    project_root = current
                    break
                current = current.parent
            else:
                project_root = Path(__file__).parent.parent.parent

        self.project_root = Path(project_root)
        self.config_dir = self.project_root / "config"
        self.user_config_dir = Path(user_config_dir) if user_config_dir else self._get_user_config_dir()

        self._config: Optional[DJMetadataConfig] = None

        self.logger.debug(f"ConfigManager initialized")
        self.logger.debug(f"  Project root: {self.project_root}")
        self.logger.debug(f"  User config: {self.user_config_dir}")

    def _get_user_config_dir(self) -> Path:
        """Get platform-appropriate user config directory"""
        system = platform.system()

        if system == "Windows":
            base = Path(os.environ.get("APPDATA", "~"))
        elif system == "Darwin":  # macOS
            base = Path("~/Library/Application Support")
        else:  # Linux and others
            base = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config"))

        return (base / "dj-metadata").expanduser()

    def load_config(self,
                    project_config: Optional[str] = None,
                    user_overrides: Optional[Dict] = None,
                    cli_overrides: Optional[Dict] = None) -> DJMetadataConfig:
        """
        Merge every configuration layer on top of the defaults.

        Args:
            project_config: File name inside ``config/``; ``default.json`` when omitted
            user_overrides: Settings dictionary applied after settings.json
            cli_overrides: Settings derived from command line flags, applied last

        Returns:
            Complete configuration object
        """
        config_dict = asdict(DJMetadataConfig())

        files = (
            ("project", self.config_dir / (project_config or "default.json")),
            ("user", self.user_config_dir / "settings.json"),
        )
        for label, path in files:
            if path.exists():
                config_dict = self._merge_configs(config_dict, self._load_json_config(path))
                self.logger.info(f"Loaded {label} config: {path}")

        for label, overrides in (("user", user_overrides), ("CLI", cli_overrides)):
            if overrides:
                config_dict = self._merge_configs(config_dict, overrides)
                self.logger.debug(f"Applied {label} overrides")

        self._config = self._dict_to_config(config_dict)
        return self._config

    def _load_json_config(self, config_path: Path) -> Dict[str, Any]:
        """Load JSON configuration file"""
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Failed to load config {config_path}: {e}")
            return {}

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Deep merge configuration dictionaries"""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict) -> DJMetadataConfig:
        """Convert dictionary to config dataclass"""
        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = config_dict.get(name) or {}
            known = {k: v for k, v in values.items() if k in section_cls.__dataclass_fields__}
            unknown = set(values) - set(known)
            if unknown:
                self.logger.warning(f"Ignoring unknown {name} settings: {sorted(unknown)}")
            sections[name] = section_cls(**known)

        return DJMetadataConfig(**sections)

    def save_user_settings(self, settings: Dict[str, Any]) -> bool:
        """Save user-specific settings"""
        try:
            self.user_config_dir.mkdir(parents=True, exist_ok=True)
            user_config_path = self.user_config_dir / "settings.json"

            existing = {}
            if user_config_path.exists():
                existing = self._load_json_config(user_config_path)

            merged = self._merge_configs(existing, settings)

            with open(user_config_path, 'w', encoding='utf-8') as f:
                json.dump(merged, f, indent=2, ensure_ascii=False)

            self.logger.info(f"User settings saved to {user_config_path}")
            return True

        except OSError as e:
            self.logger.error(f"Failed to save user settings: {e}")
            return False

    def get_config(self) -> DJMetadataConfig:
        """Get current configuration (load if not already loaded)"""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def validate_config(self, config: DJMetadataConfig) -> list:
        """Validate configuration and return list of issues"""
        from ..samples.vdj_sample import KEY_TABLES

        issues = []

        unknown_types = set(config.tags.tag_types) - {'id3v1', 'id3v2', 'lyrics3'}
        if unknown_types:
            issues.append(f"unknown tag_types: {sorted(unknown_types)}")

        if config.tags.min_size < 0 or config.tags.max_size < config.tags.min_size:
            issues.append("tag size limits must satisfy 0 <= min_size <= max_size")

        if config.sample.key_table not in KEY_TABLES:
            issues.append(f"unknown key_table: {config.sample.key_table}")

        if config.fingerprint.algorithm not in ("offset", "simple"):
            issues.append("fingerprint algorithm must be 'offset' or 'simple'")

        if config.fingerprint.max_offset < 0:
            issues.append("max_offset must be 0 (unbounded) or positive")

        if not 0.0 <= config.fingerprint.match_threshold <= 1.0:
            issues.append("match_threshold must be between 0.0 and 1.0")

        return issues


# Global config manager instance
_config_manager: Optional[ConfigManager] = None

def get_config_manager() -> ConfigManager:
    """Get global config manager instance"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def get_config(project_config: Optional[str] = None, **overrides) -> DJMetadataConfig:
    """Convenience function to get configuration"""
    manager = get_config_manager()
    return manager.load_config(project_config=project_config, cli_overrides=overrides)
