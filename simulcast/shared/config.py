"""
Centralized environment configuration.

Values are layered, later sources override earlier ones:
1) `env.example` (committed, safe placeholders)
2) `env.local` (optional, developer-local, MUST NOT be committed)
3) System environment variables (highest priority)
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from loguru import logger


class EnvironConfig:
    """
    Singleton configuration class that loads environment variables from env files
    and system environment, providing dictionary-like access with default values.
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(EnvironConfig, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._config = {}
            self._load_config()
            EnvironConfig._initialized = True

    def _load_config(self):
        root = Path(__file__).parent.parent.parent

        example_path = root / "env.example"
        if example_path.exists():
            self._config.update(dotenv_values(example_path))
            logger.info("Loaded environment variables from {}", example_path)

        local_path = root / "env.local"
        if local_path.exists():
            self._config.update(dotenv_values(local_path))
            logger.info("Loaded and overrode environment variables from {}", local_path)

        self._config.update(os.environ)

    def __getitem__(self, key):
        """
        Get configuration value by key.

        Raises:
            KeyError: If key not found
        """
        if key not in self._config:
            raise KeyError(f"Configuration key '{key}' not found")

        return self._config[key]

    def get(self, key, default=None):
        return self._config.get(key, default)

    def reload(self):
        """
        Reload configuration from files and environment.
        Useful for testing or when configuration files change.
        """
        self._config.clear()
        self._load_config()
        logger.info("Configuration reloaded")

    def __contains__(self, key):
        return key in self._config

    def __iter__(self):
        return iter(self._config)

    def keys(self):
        return self._config.keys()

    def items(self):
        return self._config.items()

    def get_mongo_url(self, label: str = "default") -> str:
        """
        Get MongoDB connection URL for a specific label.

        The default label tries MONGO_URL_DEFAULT, then MONGO_URL, then localhost.
        Other labels read MONGO_URL_<LABEL>.
        """
        if label == "default":
            for key in ("MONGO_URL_DEFAULT", "MONGO_URL"):
                url = self.get(key)
                if url:
                    return url
            return "mongodb://localhost:27017"

        return self.get(f"MONGO_URL_{label.upper()}") or ""

    def _get_bounded_int(self, key: str, default: int, low: int = 1, high: int | None = None) -> int:
        raw = self.get(key, str(default))
        try:
            value = int(raw)
        except (ValueError, TypeError):
            logger.warning("Invalid {} value '{}', defaulting to {}", key, raw, default)
            return default

        if value < low or (high is not None and value > high):
            logger.warning("{} value {} is out of range, defaulting to {}", key, value, default)
            return default
        return value

    def get_mongo_max_pool_size(self) -> int:
        return self._get_bounded_int("MONGO_MAX_POOL_SIZE", 5, 1, 100)

    def get_mongo_server_selection_timeout(self) -> int:
        """Server selection timeout in milliseconds (default: 30000)."""
        return self._get_bounded_int("MONGO_SERVER_SELECTION_TIMEOUT", 30000)

    def get_mongo_connect_timeout(self) -> int:
        return self._get_bounded_int("MONGO_CONNECT_TIMEOUT", 30000)

    def get_mongo_socket_timeout(self) -> int:
        return self._get_bounded_int("MONGO_SOCKET_TIMEOUT", 300000)


# Global configuration instance
config = EnvironConfig()
