"""
Configuration management for sortd.
Handles loading, validation, and merging of configurations from multiple sources.
"""

import os
import json
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from copy import deepcopy

from sortd.organization_logic.rules import OrganizationRule, load_rules
from sortd.organization_logic.settings import Config, Settings
from sortd.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "sortd" / "config.yaml"
ENV_PREFIX = "SORTD_"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ConfigManager:
    """Manage configuration from defaults, files, environment and overrides."""

    def __init__(
        self,
        config_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to a YAML or JSON configuration file;
                DEFAULT_CONFIG_PATH is read when omitted and present
            overrides: Dotted-path values applied last (e.g. from CLI flags)
            use_env: Whether to apply SORTD_* environment variables
        """
        if config_file:
            self.config_file = Path(config_file).expanduser()
        elif DEFAULT_CONFIG_PATH.exists():
            self.config_file = DEFAULT_CONFIG_PATH
        else:
            self.config_file = None
        self.config = self._load_default_config()
        # What save() writes back: the file contents plus explicit edits
        self.file_config: Dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            self._load_from_file(self.config_file)
        elif self.config_file:
            logger.info(f"Config file {self.config_file} not found, using defaults")

        if use_env:
            self._load_from_env()

        for path, value in (overrides or {}).items():
            if value is not None:
                self._set_path(self.config, path, value)

        self._validate_config()

        logger.debug("Configuration loaded successfully")

    def _load_default_config(self) -> Dict[str, Any]:
        """Load default configuration."""
        return {
            "organize": {"patterns": []},
            "settings": Settings().to_dict(),
            "directories": {"default": ".", "watch": []},
            "watch_directories": [],
            "watch": {"interval": 5.0, "recursive": False},
            "logging": {
                "level": "INFO",
                "file": None,
                "max_size": 10485760,  # 10MB
                "backup_count": 5,
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
        }

    def _load_from_file(self, config_file: Path):
        """Load configuration from file."""
        logger.info(f"Loading configuration from {config_file}")

        try:
            with open(config_file, "r") as f:
                if config_file.suffix == ".json":
                    file_config = json.load(f)
                elif config_file.suffix in (".yaml", ".yml"):
                    file_config = yaml.safe_load(f)
                else:
                    raise ConfigurationError(
                        "unsupported config file format", param=str(config_file)
                    )
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config file: {e}")
            raise ConfigurationError(
                f"error reading config file ({e})", param=str(config_file)
            ) from e

        if file_config is None:
            return
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                "config file must contain a mapping", param=str(config_file)
            )

        self.file_config = deepcopy(file_config)
        self._deep_merge(self.config, file_config)

    def _load_from_env(self):
        """Load configuration from SORTD_* environment variables.

        ``SORTD_SETTINGS__DRY_RUN=true`` sets ``settings.dry_run``;
        ``SORTD_LOG_LEVEL`` is a shortcut for ``logging.level``.
        """
        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            if key == "SORTD_LOG_LEVEL":
                self._set_nested_config(self.config, ["logging", "level"], value)
                continue
            config_path = key[len(ENV_PREFIX):].lower().split("__")
            if len(config_path) < 2:
                continue
            self._set_nested_config(self.config, config_path, value)

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]):
        """Deep merge update dictionary into base dictionary."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _set_nested_config(
        self, config_dict: Dict[str, Any], path: List[str], value: Any
    ):
        """Set a value in a nested dictionary using a path."""
        # Convert value to appropriate type if it's a string
        if isinstance(value, str):
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            elif value.replace(".", "", 1).isdigit() and value.count(".") == 1:
                value = float(value)
            elif value.startswith("[") and value.endswith("]"):
                try:
                    value = json.loads(value)
                except ValueError:
                    logger.warning(f"Could not parse list value {value!r}")

        current = config_dict
        for part in path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[path[-1]] = value

    def _validate_config(self):
        """Validate configuration values.

        Raises:
            ConfigurationError: Listing the first invalid section
        """
        # Settings and rules validate themselves while being built
        self.to_config()

        level = str(self.config["logging"].get("level", "INFO")).upper()
        if level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"logging level must be one of {VALID_LOG_LEVELS}", param=level
            )
        self.config["logging"]["level"] = level

        interval = self.config.get("watch", {}).get("interval", 5.0)
        if not isinstance(interval, (int, float)) or interval <= 0:
            raise ConfigurationError(
                "watch interval must be a positive number", param=str(interval)
            )

    def to_config(self) -> Config:
        """Build the typed engine configuration from the loaded values."""
        organize = self.config.get("organize") or {}
        if not isinstance(organize, dict):
            raise ConfigurationError("organize must be a mapping", param="organize")

        rules = load_rules(organize.get("patterns"))
        settings = Settings.from_dict(self.config.get("settings"))

        directories = self.config.get("directories") or {}
        watch_dirs: List[str] = []
        for directory in list(self.config.get("watch_directories") or []) + list(
            directories.get("watch") or []
        ):
            directory = os.path.expanduser(str(directory))
            if directory not in watch_dirs:
                watch_dirs.append(directory)
        for index, directory in enumerate(watch_dirs):
            if not str(directory).strip():
                raise ConfigurationError(
                    f"watch directory {index}: path cannot be empty",
                    param="watch_directories",
                )

        default_directory = str(directories.get("default") or ".")

        return Config(
            rules=rules,
            settings=settings,
            default_directory=os.path.expanduser(default_directory),
            watch_directories=watch_dirs,
        )

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            path: Configuration path (e.g., 'settings.collision')
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        parts = path.split(".")
        current = self.config

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default

        return current

    def set(self, path: str, value: Any):
        """
        Set configuration value using dot notation.

        Unlike environment values and constructor overrides, values set here
        are written out by save().

        Args:
            path: Configuration path (e.g., 'settings.dry_run')
            value: Value to set
        """
        self._set_path(self.config, path, value)
        self._set_path(self.file_config, path, deepcopy(value))

    @staticmethod
    def _set_path(config_dict: Dict[str, Any], path: str, value: Any):
        parts = path.split(".")
        current = config_dict

        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = value

    @staticmethod
    def _patterns(config_dict: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not isinstance(config_dict.get("organize"), dict):
            config_dict["organize"] = {}
        organize = config_dict["organize"]
        if not isinstance(organize.get("patterns"), list):
            organize["patterns"] = []
        return organize["patterns"]

    def add_rule(self, rule: Dict[str, Any]) -> OrganizationRule:
        """Append an organization pattern after the existing ones.

        Raises:
            ConfigurationError: If the pattern is invalid
        """
        organization_rule = OrganizationRule.from_dict(rule)
        self._patterns(self.config).append(organization_rule.to_dict())
        self._patterns(self.file_config).append(organization_rule.to_dict())
        logger.info(f"Added organization pattern: {organization_rule.describe()}")
        return organization_rule

    def get_rules(self) -> List[OrganizationRule]:
        return list(self.to_config().rules)

    def save(
        self,
        filepath: Optional[Union[str, Path]] = None,
        format: Optional[str] = None,
    ):
        """
        Save the file layer of the configuration.

        Only what was read from the config file plus edits made through set()
        and add_rule() is written; environment values and overrides are not.

        Args:
            filepath: Destination (defaults to the loaded file or the default path)
            format: 'json' or 'yaml'; inferred from the suffix when omitted

        Returns:
            Path the configuration was written to
        """
        if filepath is None:
            filepath = self.config_file or DEFAULT_CONFIG_PATH
        filepath = Path(filepath)
        if format is None:
            format = "json" if filepath.suffix == ".json" else "yaml"

        logger.info(f"Saving configuration to {filepath}")
        filepath.parent.mkdir(parents=True, exist_ok=True)

        data = deepcopy(self.file_config)
        with open(filepath, "w") as f:
            if format == "json":
                json.dump(data, f, indent=2)
            elif format in ("yaml", "yml"):
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            else:
                raise ValueError(f"Unsupported format: {format}")

        return filepath
