"""Configuration management for modgraph."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from ..errors import ConfigError


CONFIG_FILE_NAME = ".modgraph.yaml"
CONFIG_ENV_VAR = "MODGRAPH_CONFIG"
LOG_LEVEL_ENV_VAR = "MODGRAPH_LOG_LEVEL"

NAMESPACE_POLICIES = ("suppress", "report")


class Config:
    """Configuration manager with lazy loading and defaults."""

    _instance: Optional["Config"] = None
    _config: dict = {}

    DEFAULT_CONFIG = {
        "project": {
            "root_path": ".",
            "name": "project"
        },
        "parsing": {
            "include_patterns": [
                "**/*.ts", "**/*.tsx", "**/*.mts", "**/*.cts",
                "**/*.js", "**/*.jsx", "**/*.mjs", "**/*.cjs"
            ],
            "exclude_patterns": [
                "**/node_modules/**", "**/dist/**", "**/build/**",
                "**/.git/**", "**/coverage/**"
            ]
        },
        "resolution": {
            "extensions": [
                ".ts", ".tsx", ".mts", ".cts", ".js", ".jsx", ".mjs", ".cjs", ".d.ts"
            ]
        },
        "analysis": {
            "namespace_policy": "suppress",
            "entry_points": [],
            "max_cycles": 100,
            "workers": 1
        },
        "logging": {
            "level": "INFO",
            "file": None
        }
    }

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def load(self, config_path: Optional[Path] = None) -> None:
        """Load configuration from YAML file.

        Lookup order: explicit path, $MODGRAPH_CONFIG, then .modgraph.yaml in
        the working directory. A .env file is read first so the environment
        variable can live there.
        """
        load_dotenv()

        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else Path.cwd() / CONFIG_FILE_NAME

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ConfigError(f"{config_path}: top level must be a mapping")
            self._config = loaded
        else:
            self._config = {}

        env_level = os.environ.get(LOG_LEVEL_ENV_VAR)
        if env_level:
            self._config.setdefault("logging", {})["level"] = env_level

    def reset(self) -> None:
        """Drop loaded values so the next access reloads from disk."""
        self._config = {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value using dot notation (e.g., 'analysis.workers')."""
        if not self._config:
            self.load()

        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                # Fall back to the built-in defaults
                default_value = self.DEFAULT_CONFIG
                for dk in keys:
                    if isinstance(default_value, dict) and dk in default_value:
                        default_value = default_value[dk]
                    else:
                        return default
                return default_value

        return value

    @property
    def project_root(self) -> Path:
        """Get project root path."""
        return Path(self.get("project.root_path", "."))

    @property
    def include_patterns(self) -> list:
        """Get file include patterns."""
        return self.get("parsing.include_patterns", ["**/*.ts"])

    @property
    def exclude_patterns(self) -> list:
        """Get file exclude patterns."""
        return self.get("parsing.exclude_patterns", [])

    @property
    def extensions(self) -> list:
        """Get the extensions tried when resolving extension-less imports."""
        return self.get("resolution.extensions", [".ts", ".js"])

    @property
    def namespace_policy(self) -> str:
        policy = self.get("analysis.namespace_policy", "suppress")
        if policy not in NAMESPACE_POLICIES:
            raise ConfigError(
                f"analysis.namespace_policy must be one of {NAMESPACE_POLICIES}, got {policy!r}"
            )
        return policy

    @property
    def entry_points(self) -> list:
        return self.get("analysis.entry_points", []) or []

    @property
    def max_cycles(self) -> Optional[int]:
        return self.get("analysis.max_cycles", None)

    @property
    def workers(self) -> int:
        workers = int(self.get("analysis.workers", 1))
        if workers < 1:
            raise ConfigError(f"analysis.workers must be at least 1, got {workers}")
        return workers

    @property
    def log_level(self) -> str:
        return str(self.get("logging.level", "INFO"))

    @property
    def log_file(self) -> Optional[Path]:
        log_file = self.get("logging.file", None)
        return Path(log_file) if log_file else None


# Global config instance
config = Config()
