"""
User configuration management for dupematch.

Supports configuration from multiple sources (in order of priority):
1. Runtime parameters (highest priority)
2. Environment variables
3. User config file (~/.dupematch/config.json)
4. Default values from config.py (lowest priority)

Configuration file location: ~/.dupematch/config.json

Example config.json:
{
    "variant": "advanced",
    "similarity_threshold": null,
    "include_rotations": true,
    "chi_square_cap": 2.0,
    "max_image_pixels": 500000000,
    "skiplist_db_file": null
}
"""

import json
import os
from pathlib import Path
from typing import Any, Optional
import logging

from .config import (
    CHI_SQUARE_CAP,
    CONFIG_DIR,
    DEFAULT_INCLUDE_ROTATIONS,
    DEFAULT_VARIANT,
    MAX_IMAGE_PIXELS,
    SKIPLIST_DB_FILE,
)

logger = logging.getLogger(__name__)


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    Attributes are lazy-loaded and cached for performance.
    """

    _instance: Optional['UserConfig'] = None
    _config_data: Optional[dict] = None

    def __new__(cls):
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        env_dir = os.getenv('DUPEMATCH_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)
        return Path(CONFIG_DIR)

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                logger.debug(f"Loaded configuration from {self.config_file_path}")
                return data
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found
            env_var: Optional environment variable name to check

        Returns:
            Configuration value
        """
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for numbers, booleans and null
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        config_data = self._get_config_data()
        if key in config_data:
            return config_data[key]

        return default

    def get_number(self, key: str, default: Any, env_var: Optional[str] = None, cast=float) -> Any:
        """
        Get a numeric configuration value, falling back to the default
        (with a warning) when the stored value cannot be converted.
        """
        value = self.get(key, default=default, env_var=env_var)
        if value is None:
            return None
        try:
            return cast(value)
        except (ValueError, TypeError):
            logger.warning(f"Invalid value {value!r} for {key}, using {default!r}")
            return default

    @property
    def variant(self) -> str:
        """Fingerprint variant: 'basic' or 'advanced'."""
        return self.get('variant', default=DEFAULT_VARIANT, env_var='DUPEMATCH_VARIANT')

    @property
    def similarity_threshold(self) -> Optional[float]:
        """Similarity threshold in percent (None = per-variant default)."""
        return self.get_number('similarity_threshold', default=None, env_var='DUPEMATCH_THRESHOLD')

    @property
    def include_rotations(self) -> bool:
        """Whether the advanced variant computes rotation hashes."""
        return bool(self.get(
            'include_rotations',
            default=DEFAULT_INCLUDE_ROTATIONS,
            env_var='DUPEMATCH_INCLUDE_ROTATIONS'
        ))

    @property
    def chi_square_cap(self) -> float:
        """Normalization constant for the colour histogram distance."""
        return self.get_number('chi_square_cap', default=CHI_SQUARE_CAP, env_var='DUPEMATCH_CHI_SQUARE_CAP')

    @property
    def max_image_pixels(self) -> int:
        """Maximum image size in pixels (decompression bomb limit)."""
        return self.get_number(
            'max_image_pixels', default=MAX_IMAGE_PIXELS, env_var='DUPEMATCH_MAX_PIXELS', cast=int
        )

    @property
    def skiplist_db_file(self) -> str:
        """Path to the skip-list database."""
        custom = self.get('skiplist_db_file', env_var='DUPEMATCH_SKIPLIST_DB')
        if custom:
            return str(custom)
        return SKIPLIST_DB_FILE

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        example_config = {
            "_comment": "dupematch user configuration",
            "variant": DEFAULT_VARIANT,
            "similarity_threshold": None,
            "include_rotations": DEFAULT_INCLUDE_ROTATIONS,
            "chi_square_cap": CHI_SQUARE_CAP,
            "max_image_pixels": MAX_IMAGE_PIXELS,
            "skiplist_db_file": None,
        }

        try:
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
            logger.info(f"Created example config file at {self.config_file_path}")
            return True
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
