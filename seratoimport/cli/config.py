"""
CLI Configuration Management

Provides configuration loading and validation for the Serato Import CLI.
Sources, lowest to highest precedence: built-in defaults, JSON configuration
file, environment variables (including a .env file). Command line arguments
are applied on top by the CLI.
"""

import os
import json
import copy
import platform
from typing import Dict, Any, Optional
from pathlib import Path

from dotenv import load_dotenv

from ..core.exceptions import ArgumentError
from ..core.models import (
    DEFAULT_APP_NAME, DEFAULT_ARCHIVE_DIR, DEFAULT_SERATO_DIR, DEFAULT_TAGS,
    LOOKUP_POLICIES, ImportOptions
)
from ..utils.logging_config import LOG_LEVELS, get_logger


class CLIConfig:
    """
    CLI configuration manager

    Features:
    - Multiple configuration sources (file, environment, defaults)
    - Platform-specific configuration paths
    - Environment variable overrides, with .env support
    - Configuration validation
    """

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager"""
        self.config_path = config_path or self._get_default_config_path()
        self.explicit_path = config_path is not None
        self._config_cache: Optional[Dict[str, Any]] = None
        self._defaults = self._get_default_config()
        self.logger = get_logger('config')

        # Look for .env in current directory and parent directories
        env_path = self._find_env_file()
        if env_path:
            load_dotenv(env_path)

    def _get_default_config_path(self) -> str:
        """Get default configuration file path based on platform"""
        if platform.system() == "Darwin":
            config_dir = os.path.expanduser("~/Library/Application Support/SeratoImport")
        else:
            config_dir = os.path.expanduser("~/.config/seratoimport")

        return os.path.join(config_dir, "config.json")

    def _find_env_file(self) -> Optional[str]:
        """Find .env file in current directory or parent directories"""
        current_dir = Path.cwd()

        # Check current directory and up to 3 parent directories
        for _ in range(4):
            env_file = current_dir / '.env'
            if env_file.exists():
                return str(env_file)
            if current_dir == current_dir.parent:  # Reached root
                break
            current_dir = current_dir.parent

        return None

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values"""
        return {
            "import": {
                "dry_run": False,
                "delete_old_archived": True,
                "retention_days": 30,
                "extensions": [".m4a"],
                "tags": list(DEFAULT_TAGS),
                "lookup_policy": "latest",
                "backup_database": True
            },

            "paths": {
                "serato_dir": DEFAULT_SERATO_DIR,
                "archive_dir": DEFAULT_ARCHIVE_DIR,
                "log_dir": "~"
            },

            "collaborators": {
                "prober": "ffprobe",
                "tagger": "exiftool",
                "command_timeout": 60
            },

            "application": {
                "name": DEFAULT_APP_NAME,
                "relaunch": True,
                "relaunch_delay": 2.0
            },

            "logging": {
                "console_level": "INFO",
                "file_level": "DEBUG",
                "log_dir": None,
                "enable_console": True
            }
        }

    def load_config(self, force_reload: bool = False) -> Dict[str, Any]:
        """
        Load configuration from all sources

        Args:
            force_reload: Force reload from file (ignore cache)

        Returns:
            Merged configuration dictionary

        Raises:
            ArgumentError: If an explicitly requested config file is unusable
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config = copy.deepcopy(self._defaults)

        file_config = self._load_from_file()
        if file_config:
            config = self._deep_merge(config, file_config)

        env_config = self._load_from_environment()
        if env_config:
            config = self._deep_merge(config, env_config)

        config = self._validate_config(config)

        self._config_cache = config
        return config

    def _load_from_file(self) -> Optional[Dict[str, Any]]:
        """Load configuration from JSON file"""
        if not os.path.exists(self.config_path):
            if self.explicit_path:
                raise ArgumentError(f"Configuration file not found: {self.config_path}")
            return None

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            if self.explicit_path:
                raise ArgumentError(
                    f"Failed to load config file {self.config_path}",
                    details=str(e)
                )
            self.logger.warning(f"Failed to load config file {self.config_path}: {e}")
            return None

        if not isinstance(data, dict):
            raise ArgumentError(f"Configuration must be a JSON object: {self.config_path}")
        return data

    def _load_from_environment(self) -> Dict[str, Any]:
        """Load configuration overrides from environment variables"""
        config = {}

        env_mappings = {
            'SERATO_IMPORT_DRY_RUN': ('import', 'dry_run', self._str_to_bool),
            'SERATO_IMPORT_DELETE_OLD_ARCHIVED': ('import', 'delete_old_archived', self._str_to_bool),
            'SERATO_IMPORT_RETENTION_DAYS': ('import', 'retention_days', int),
            'SERATO_IMPORT_EXTENSIONS': ('import', 'extensions', self._str_to_list),
            'SERATO_IMPORT_LOOKUP_POLICY': ('import', 'lookup_policy', str),
            'SERATO_IMPORT_SERATO_DIR': ('paths', 'serato_dir', str),
            'SERATO_IMPORT_ARCHIVE_DIR': ('paths', 'archive_dir', str),
            'SERATO_IMPORT_LOG_DIR': ('paths', 'log_dir', str),
            'SERATO_IMPORT_PROBER': ('collaborators', 'prober', str),
            'SERATO_IMPORT_TAGGER': ('collaborators', 'tagger', str),
            'SERATO_IMPORT_APP_NAME': ('application', 'name', str),
            'SERATO_IMPORT_RELAUNCH': ('application', 'relaunch', self._str_to_bool),
            'SERATO_IMPORT_LOG_LEVEL': ('logging', 'console_level', self._str_to_log_level),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                try:
                    converted_value = converter(value)
                except ValueError as e:
                    self.logger.warning(f"Invalid environment variable {env_var}={value}: {e}")
                    continue
                config.setdefault(section, {})[key] = converted_value

        return config

    @staticmethod
    def _str_to_bool(value: str) -> bool:
        """Convert string to boolean"""
        return value.strip().lower() in ('true', '1', 'yes', 'on', 'enabled')

    @staticmethod
    def _str_to_log_level(value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"expected one of {', '.join(LOG_LEVELS)}")
        return level

    @staticmethod
    def _str_to_list(value: str):
        return [item.strip() for item in value.split(',') if item.strip()]

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries"""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and sanitize configuration values

        Raises:
            ArgumentError: If a section is not an object or a value has the wrong type
        """
        for section in self._defaults:
            if not isinstance(config.get(section), dict):
                raise ArgumentError(f"Configuration section '{section}' must be an object")

        import_section = config['import']
        retention_days = self._convert(import_section, 'import', 'retention_days', int)
        import_section['retention_days'] = max(1, min(retention_days, 3650))
        if import_section.get('lookup_policy') not in LOOKUP_POLICIES:
            self.logger.warning(
                f"Unknown lookup policy {import_section.get('lookup_policy')!r}, using 'latest'"
            )
            import_section['lookup_policy'] = 'latest'

        collaborators = config['collaborators']
        collaborators['command_timeout'] = max(
            1, self._convert(collaborators, 'collaborators', 'command_timeout', int)
        )

        application = config['application']
        application['relaunch_delay'] = max(
            0.0, self._convert(application, 'application', 'relaunch_delay', float)
        )

        logging_section = config['logging']
        for key in ('console_level', 'file_level'):
            level = str(logging_section.get(key, '')).upper()
            if level not in LOG_LEVELS:
                raise ArgumentError(
                    f"Invalid logging.{key}: {logging_section.get(key)!r}",
                    details=f"Use one of {', '.join(LOG_LEVELS)}"
                )
            logging_section[key] = level

        return config

    def _convert(self, section: Dict[str, Any], section_name: str, key: str, converter):
        value = section.get(key, self._defaults[section_name][key])
        if isinstance(value, bool):
            raise ArgumentError(f"Invalid {section_name}.{key}: {value!r}")
        try:
            return converter(value)
        except (TypeError, ValueError) as e:
            raise ArgumentError(f"Invalid {section_name}.{key}: {value!r}", details=str(e))

    def get_option(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration option using dot notation

        Args:
            path: Dot-separated path (e.g., 'import.retention_days')
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        config = self.load_config()

        value = config
        try:
            for key in path.split('.'):
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def to_import_options(self) -> ImportOptions:
        """Flatten the loaded configuration into ImportOptions"""
        config = self.load_config()
        import_section = config['import']
        paths = config['paths']
        collaborators = config['collaborators']
        application = config['application']

        return ImportOptions.from_dict({
            'dry_run': import_section['dry_run'],
            'delete_old_archived': import_section['delete_old_archived'],
            'retention_days': import_section['retention_days'],
            'extensions': import_section['extensions'],
            'tags': import_section['tags'],
            'lookup_policy': import_section['lookup_policy'],
            'backup_database': import_section['backup_database'],
            'serato_dir': paths['serato_dir'],
            'archive_dir': paths['archive_dir'],
            'log_dir': paths['log_dir'],
            'prober': collaborators['prober'],
            'tagger': collaborators['tagger'],
            'command_timeout': collaborators['command_timeout'],
            'app_name': application['name'],
            'relaunch_app': application['relaunch'],
            'relaunch_delay': application['relaunch_delay'],
        })
