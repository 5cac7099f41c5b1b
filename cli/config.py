"""Configuration management for the Thunderspear CLI."""

import json
import os
import shutil
from pathlib import Path
from typing import Optional

from common.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_RATE_LIMIT_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from common.logging_config import get_logger
from uploader.catalog import default_catalog_path

logger = get_logger(__name__)


def default_config_path() -> Path:
    override = os.environ.get("THUNDERSPEAR_CONFIG")
    if override:
        return Path(override)
    return Path.home() / '.thunderspear-cli' / 'config.json'


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "api_base_url": os.environ.get("THUNDERSPEAR_API_URL", DEFAULT_API_BASE_URL),
        "timeout": DEFAULT_REQUEST_TIMEOUT_SECONDS,
        "rate_limit_max_attempts": DEFAULT_RATE_LIMIT_MAX_ATTEMPTS,
        "catalog_path": None,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.thunderspear-cli/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Config {self.config_path} unreadable ({e}), backed up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except IOError as copy_error:
                    logger.error(f"Failed to back up config: {copy_error}")
                return self.DEFAULT_CONFIG.copy()
        else:
            config = self.DEFAULT_CONFIG.copy()
            try:
                with open(self.config_path, 'w') as f:
                    json.dump(config, f, indent=2)
            except IOError as e:
                logger.warning(f"Could not write default config to {self.config_path}: {e}")
            return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Could not save config to {self.config_path}: {e}")

    def get_base_url(self) -> str:
        """
        Get remote API base URL.

        Returns:
            Base URL string (e.g., "https://discord.com/api/v9")
        """
        return self.data.get('api_base_url', DEFAULT_API_BASE_URL).rstrip('/')

    def get_timeout(self) -> float:
        """
        Get request timeout in seconds for negotiate/finalize calls.

        Returns:
            Timeout value in seconds
        """
        return float(self.data.get('timeout', DEFAULT_REQUEST_TIMEOUT_SECONDS))

    def get_rate_limit_max_attempts(self) -> Optional[int]:
        """
        Get the number of rate-limited attempts allowed per remote call.

        Returns:
            Attempt cap, or None for unlimited
        """
        value = self.data.get('rate_limit_max_attempts', DEFAULT_RATE_LIMIT_MAX_ATTEMPTS)
        return int(value) if value is not None else None

    def get_catalog_path(self) -> Path:
        """
        Get catalog document location.

        Returns:
            Configured path, or the per-OS default when unset
        """
        path = self.data.get('catalog_path')
        return Path(path).expanduser() if path else default_catalog_path()
