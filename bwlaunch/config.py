"""
Centralized configuration management for BWLaunch
Handles environment-specific configs and validation with thread safety
"""

import copy
import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .config_schema import migrate_legacy_config, validate_config_dict
from .constants import (DEFAULT_DARK_END, DEFAULT_DARK_START,
                        DEFAULT_FAVORITE_COUNT, DEFAULT_TEXT_SIZE)

load_dotenv()

logger = logging.getLogger(__name__)


class ConfigManager:
    """Manages configuration loading and validation"""

    def __init__(self, base_path: Optional[str] = None):
        env_base = os.getenv("BWLAUNCH_BASE_PATH")
        if base_path:
            self.base_path = Path(base_path)
        elif env_base:
            self.base_path = Path(env_base)
        else:
            self.base_path = Path(__file__).parent.parent
        self.config_dir = self.base_path / "config"
        self.environment = self._detect_environment()

    def _detect_environment(self) -> str:
        """Auto-detect environment based on platform and environment variables"""
        env_var = os.getenv("BWLAUNCH_ENV")
        if env_var:
            return env_var

        is_device = (
            (platform.machine().startswith(('arm', 'aarch64')) and platform.system() == 'Linux') or
            os.path.exists('/sys/firmware/devicetree/base/model') or
            os.getenv('BWLAUNCH_DEVICE') == '1'
        )
        return "production" if is_device else "development"

    def load_config(self, config_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration based on environment

        Args:
            config_name: Specific config file name (without .json)
                        If None, uses environment-based config

        Returns:
            Configuration dictionary
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        default_config_file = self.config_dir / "default_config.json"

        default_config = {}
        if default_config_file.exists():
            try:
                with open(default_config_file, 'r', encoding='utf-8') as f:
                    default_config = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Could not load default config: {e}")

        env_config = {}
        if config_file.exists():
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    env_config = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Could not load {config_name} config: {e}")

        # Environment overrides default
        config = {**default_config, **env_config}

        config["_runtime"] = {
            "environment": self.environment,
            "config_file": str(config_file),
            "base_path": str(self.base_path)
        }

        return self.validate_config(config)

    def validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and clean configuration.

        Uses the Pydantic schema; falls back to legacy defaults filling when
        the file does not satisfy the schema.
        """
        try:
            migrated_config = migrate_legacy_config(config)
            validated_model, warnings = validate_config_dict(migrated_config)

            for warning in warnings:
                logger.warning(f"Config validation warning: {warning}")

            validated_dict = validated_model.to_dict()
            if "_runtime" in config:
                validated_dict["_runtime"] = config["_runtime"]

            logger.debug("✅ Configuration validated against Pydantic schema")
            return validated_dict

        except ValueError as e:
            logger.error(f"❌ Configuration schema validation failed: {e}")
            logger.warning("Falling back to legacy validation (data may be incomplete)")

        return self._legacy_validate_config(migrate_legacy_config(config))

    def _legacy_validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Fill defaults and repair individual fields without the schema."""
        defaults = {
            "display_mode": "text",
            "font_type": "sans_serif",
            "text_size": DEFAULT_TEXT_SIZE,
            "favorite_count": DEFAULT_FAVORITE_COUNT,
            "favorites": [],
            "custom_labels": {},
            "dark_mode": False,
            "dark_mode_schedule": "manual",
            "dark_start": DEFAULT_DARK_START,
            "dark_end": DEFAULT_DARK_END,
            "location_latitude": 0.0,
            "location_longitude": 0.0,
            "weather_enabled": False,
            "use_celsius": False,
            "weather_cache": None,
            "weather_cache_time": 0.0,
            "debug": False,
            "log_level": "INFO",
            "timezone": os.getenv("BWLAUNCH_TIMEZONE", "UTC"),
        }

        for key, default_value in defaults.items():
            if key not in config:
                config[key] = copy.deepcopy(default_value)

        # Repair each field individually so one bad value doesn't wipe the rest
        for key, value in list(config.items()):
            if key.startswith("_") or key not in defaults:
                continue
            try:
                validate_config_dict({key: value})
            except ValueError:
                logger.warning("Invalid value for '%s' in config – using default", key)
                config[key] = copy.deepcopy(defaults[key])

        return config

    def save_config(self, config: Dict[str, Any], config_name: Optional[str] = None) -> bool:
        """
        Save configuration to file

        Returns:
            True if saved successfully
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"

        try:
            try:
                validated_model, _ = validate_config_dict(config)
                save_data = validated_model.to_json_safe()
            except ValueError:
                save_data = {k: v for k, v in config.items() if not k.startswith("_")}

            config_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = config_file.with_suffix(".json.tmp")
            with open(tmp_file, 'w', encoding='utf-8') as f:
                json.dump(save_data, f, indent=2)
            os.replace(tmp_file, config_file)
            return True
        except (IOError, TypeError, ValueError) as e:
            logger.error(f"❌ Could not save config {config_file}: {e}")
            return False

    def get_environment(self) -> str:
        return self.environment

    def list_available_configs(self) -> list[str]:
        """List all available configuration files"""
        if not self.config_dir.exists():
            return []
        return sorted(config_file.stem for config_file in self.config_dir.glob("*.json"))


# Global config manager instance
config_manager = ConfigManager()

# Initialize thread-safe config system
from .utils.thread_safety import (get_thread_safe_config_manager,  # noqa: E402
                                  initialize_thread_safe_config,
                                  load_config_safe, save_config_safe)
from .utils.timezone import on_config_change  # noqa: E402

initialize_thread_safe_config(config_manager)
get_thread_safe_config_manager().add_change_listener(on_config_change)


def load_config() -> Dict[str, Any]:
    """Load current environment configuration (THREAD-SAFE)"""
    return load_config_safe()


def save_config(config: Dict[str, Any]) -> bool:
    """Save configuration (THREAD-SAFE)"""
    return save_config_safe(config)
