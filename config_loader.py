"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

from models import RelationStyle, TitlePolicy


DEFAULT_CONFIG: Dict[str, Any] = {
    'notion': {
        'base_url': 'https://api.notion.com/v1',
        'api_version': '2022-06-28',
    },
    'export': {
        'vault_path': '.',
        'destination_directory': '',
        'attachment_directory': 'attachments',
        'subpages_directory': 'subpages',
        'title_policy': TitlePolicy.APPEND_ID.value,
        'include_content': True,
        'relation_style': RelationStyle.INLINE.value,
        'semantic_links': False,
        'normalize_date_keys': False,
        'default_attachment_extension': 'png',
        'properties': {},
        'progress_bars': True,
    },
    'advanced': {
        'request_timeout': 30,
        'max_retries': 3,
        'retry_backoff_factor': 2.0,
        'rate_limit': 0.0,
        'page_size': 100,
        'max_workers': 4,
    },
    'logging': {
        'level': 'INFO',
        'file': None,
        'migration_log': '.notion-migration.log',
    },
}

BOOLEAN_FIELDS = (
    'export.include_content',
    'export.semantic_links',
    'export.normalize_date_keys',
    'export.progress_bars',
)


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Values missing from the file are filled from DEFAULT_CONFIG.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        config_data = cls._substitute_env_vars_recursive(config_data)

        return cls.with_defaults(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return a copy of config with every missing key taken from DEFAULT_CONFIG."""
        return _deep_merge(DEFAULT_CONFIG, config)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'notion.api_key')
        cls._validate_required_field(config, 'notion.database_id')
        cls._validate_required_field(config, 'export.vault_path')

        base_url = get_nested(config, 'notion.base_url')
        if base_url:
            cls._validate_url(base_url, 'notion.base_url')

        title_policy = get_nested(config, 'export.title_policy', TitlePolicy.APPEND_ID.value)
        try:
            TitlePolicy(title_policy)
        except ValueError:
            raise ValueError(
                f"export.title_policy must be one of: {[p.value for p in TitlePolicy]}"
            )

        relation_style = get_nested(config, 'export.relation_style', RelationStyle.INLINE.value)
        try:
            RelationStyle(relation_style)
        except ValueError:
            raise ValueError(
                f"export.relation_style must be one of: {[s.value for s in RelationStyle]}"
            )

        for field in BOOLEAN_FIELDS:
            value = get_nested(config, field)
            if value is not None and not isinstance(value, bool):
                raise ValueError(f"{field} must be a boolean")

        properties = get_nested(config, 'export.properties', {})
        if properties is not None:
            if not isinstance(properties, dict):
                raise ValueError("export.properties must map property names to true/false")
            for name, enabled in properties.items():
                if not isinstance(enabled, bool):
                    raise ValueError(f"export.properties.{name} must be a boolean")

        extension = get_nested(config, 'export.default_attachment_extension', 'png')
        if not isinstance(extension, str) or not extension.strip('.'):
            raise ValueError("export.default_attachment_extension must be a non-empty string")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
            raise ValueError("advanced.request_timeout must be a positive number")

        rate_limit = get_nested(config, 'advanced.rate_limit', 0.0)
        if not isinstance(rate_limit, (int, float)) or isinstance(rate_limit, bool) or rate_limit < 0:
            raise ValueError("advanced.rate_limit must be a non-negative number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 0:
            raise ValueError("advanced.max_retries must be a non-negative integer")

        max_workers = get_nested(config, 'advanced.max_workers', 4)
        if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers < 1:
            raise ValueError("advanced.max_workers must be a positive integer")

        page_size = get_nested(config, 'advanced.page_size', 100)
        if not isinstance(page_size, int) or isinstance(page_size, bool) or not 1 <= page_size <= 100:
            raise ValueError("advanced.page_size must be an integer between 1 and 100")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('notion', 'export', 'advanced', 'logging'):
            if section not in merged or merged[section] is None:
                merged[section] = {}

        if getattr(args, 'database_id', None):
            merged['notion']['database_id'] = args.database_id

        if getattr(args, 'vault_path', None):
            merged['export']['vault_path'] = args.vault_path

        if getattr(args, 'destination', None):
            merged['export']['destination_directory'] = args.destination

        if getattr(args, 'title_policy', None):
            merged['export']['title_policy'] = args.title_policy

        if getattr(args, 'max_workers', None):
            merged['advanced']['max_workers'] = args.max_workers

        if getattr(args, 'no_progress', False):
            merged['export']['progress_bars'] = False

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        verbose = getattr(args, 'verbose', 0)
        if verbose:
            merged['logging']['level'] = 'DEBUG' if verbose >= 2 else 'INFO'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            var_name = match.group(1)
            env_value = os.getenv(var_name)
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ValueError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ValueError(f"{field_name} missing hostname: {url}")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "notion.database_id")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']
