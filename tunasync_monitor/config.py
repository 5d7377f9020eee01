#!/usr/bin/env python3

import os
import json
import copy
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("tunasync_monitor")

ENV_PREFIX = "TUNASYNC_MONITOR_"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. TUNASYNC_MONITOR_CONFIG environment variable
    2. ~/.tunasync-monitor/ directory
    """
    if 'TUNASYNC_MONITOR_CONFIG' in os.environ:
        path = Path(os.environ['TUNASYNC_MONITOR_CONFIG'])
        if path.exists():
            return path
        logger.warning(f"TUNASYNC_MONITOR_CONFIG points to missing file {path}")

    config_dir = Path.home() / '.tunasync-monitor'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # Nothing on disk; defaults apply
    return config_dir / 'config.json'


def get_default_config():
    """Get default configuration."""
    return {
        "monitor": {
            "servers": [
                "neomirrors.tuna.tsinghua.edu.cn",
                "nanomirrors.tuna.tsinghua.edu.cn",
            ],
            "expire_days": 7,
            "failed_only": False,
            "keep_going": False,
            "scheme": "https",
            "status_path": "/static/tunasync.json",
            "user_agent": "tunasync-monitor",
            "timeout_seconds": 30,
        },
        "elasticsearch": {
            "url": "http://localhost:9200",
            "index_prefix": "filebeat-",
            "field": "nginx.access.first_level",
            "timeout_seconds": 60,
        },
        "traffic": {
            "recent_days": 30,
        },
        "logging": {
            "level": "INFO",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path: Path) -> dict:
    suffix = config_path.suffix.lower()
    try:
        if suffix == '.toml':
            with open(config_path, 'rb') as f:
                return tomllib.load(f)
        if suffix in ('.yaml', '.yml'):
            with open(config_path, 'r') as f:
                return yaml.safe_load(f) or {}
        with open(config_path, 'r') as f:
            return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
        raise ConfigError(f"Error loading config from {config_path}: {e}") from e


def load_config(path=None):
    """Load configuration: defaults, then the config file, then environment."""
    config_path = Path(path) if path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        file_config = _read_config_file(config_path)
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)
        logger.debug(f"Loaded config from {config_path}")
    elif path:
        raise ConfigError(f"Config file not found: {config_path}")

    return validate_config(apply_env_overrides(config))


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = copy.deepcopy(base_config)

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _convert_env_value(key: str, value: str, current):
    if isinstance(current, list):
        return [part.strip() for part in value.split(',') if part.strip()]
    if isinstance(current, (int, float)) and not isinstance(current, bool):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError as e:
            raise ConfigError(f"{key} must be a number, got {value!r}") from e
    if value.lower() in ('true', '1', 'yes', 'on'):
        return True
    if value.lower() in ('false', '0', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


# (section, key, minimum) for settings that must be whole numbers
_INTEGER_SETTINGS = (
    ('monitor', 'expire_days', 0),
    ('traffic', 'recent_days', 1),
)

_TIMEOUT_SETTINGS = (
    ('monitor', 'timeout_seconds'),
    ('elasticsearch', 'timeout_seconds'),
)


def validate_config(config):
    """
    Check the types of the settings the commands rely on.

    Raises:
        ConfigError: a setting has the wrong type or is out of range
    """
    for section in ('monitor', 'elasticsearch', 'traffic', 'logging'):
        if not isinstance(config.get(section), dict):
            raise ConfigError(f"Config section '{section}' must be a mapping")

    for section, key, minimum in _INTEGER_SETTINGS:
        value = config[section].get(key)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"{section}.{key} must be an integer, got {value!r}")
        if value < minimum:
            raise ConfigError(f"{section}.{key} must be at least {minimum}, got {value}")

    for section, key in _TIMEOUT_SETTINGS:
        value = config[section].get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{section}.{key} must be a positive number, got {value!r}")

    servers = config['monitor'].get('servers')
    if not isinstance(servers, list) or not all(isinstance(s, str) for s in servers):
        raise ConfigError(f"monitor.servers must be a list of hostnames, got {servers!r}")

    for key in ('failed_only', 'keep_going'):
        value = config['monitor'].get(key)
        if not isinstance(value, bool):
            raise ConfigError(f"monitor.{key} must be true or false, got {value!r}")

    return config


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: TUNASYNC_MONITOR_SECTION_KEY
    For example: TUNASYNC_MONITOR_MONITOR_EXPIRE_DAYS=14

    List values (such as monitor.servers) are given comma-separated.
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'TUNASYNC_MONITOR_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest config key that prefixes the remaining parts wins
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = _convert_env_value(
                    env_key, value, current_level[matched_key]
                )
                break

            if not isinstance(current_level[matched_key], dict):
                break
            current_level = current_level[matched_key]
            i += best_match_len

    return config


def configure_logging(config, verbose: bool = False) -> None:
    """Apply the logging section of the config to the root logger."""
    log_config = config.get('logging', {})
    level_name = 'DEBUG' if verbose else str(log_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    fmt = log_config.get('format')
    if fmt:
        for handler in root.handlers:
            handler.setFormatter(logging.Formatter(fmt))
