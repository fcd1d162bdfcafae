#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import toml
import yaml

from .exit_codes import ConfigError

DEFAULT_LOG_FORMAT = "%(levelname)s: %(message)s"

# Configure logging
stderr_handler = logging.StreamHandler(sys.stderr)
logging.basicConfig(
    level=logging.INFO,
    format=DEFAULT_LOG_FORMAT,
    handlers=[stderr_handler]
)
logger = logging.getLogger("cookbookvendor")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. COOKBOOKVENDOR_CONFIG environment variable
    2. ~/.cookbookvendor/ directory
    """
    if 'COOKBOOKVENDOR_CONFIG' in os.environ:
        return Path(os.environ['COOKBOOKVENDOR_CONFIG']).expanduser()

    config_dir = Path.home() / '.cookbookvendor'
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    # If no file exists, return default path for saving
    return config_dir / 'config.json'


def load_config():
    """Load configuration from file, defaults and environment overrides."""
    config_path = get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config from {config_path}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        config = merge_configs(config, file_config)

    config = apply_env_overrides(config)
    configure_logging(config)
    return config


def save_config(config):
    """Save configuration to file."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        if config_path.suffix.lower() == '.toml':
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif config_path.suffix.lower() in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)
    except OSError as e:
        raise ConfigError(f"Error saving config to {config_path}: {e}") from e

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "general": {
            # Colon-separated on the command line; the first entry is the install root
            "cookbook_path": ["~/chef-repo/cookbooks"],
            "scratch_dir": "",
        },
        "github": {
            "api_url": "https://api.github.com",
            "host": "github.com",
            "anonymous_protocol": "https",
            "ssh_for_own_repos": True,
            "timeout_seconds": 30,
        },
        "repository": {
            "default_branch": "master",
            "vendor_branch_prefix": "chef-vendor-",
            "use_current_branch": False,
        },
        "install": {
            "default_ref": "master",
        },
        "logging": {
            "level": "INFO",
            "format": DEFAULT_LOG_FORMAT
        },
    }


def configure_logging(config):
    """Apply the logging section: level to the package logger, format to the stderr handler."""
    settings = config.get("logging", {})
    level_name = str(settings.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if isinstance(level, int):
        logger.setLevel(level)
    else:
        logger.warning(f"Unknown logging level '{level_name}', keeping {logging.getLevelName(logger.level)}")

    try:
        stderr_handler.setFormatter(logging.Formatter(settings.get("format") or DEFAULT_LOG_FORMAT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid logging format: {e}") from e


def generate_default_config():
    """Write the default configuration file if none exists yet."""
    config_path = get_config_path()
    if config_path.exists():
        return config_path, False
    save_config(get_default_config())
    return config_path, True


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


ENV_PREFIX = "COOKBOOKVENDOR_"
# Variables with the prefix that are not settings
ENV_RESERVED = {"COOKBOOKVENDOR_CONFIG", "COOKBOOKVENDOR_PROGRESS"}


def apply_env_overrides(config):
    """
    Apply COOKBOOKVENDOR_<SECTION>_<KEY> environment overrides.

    Keys may themselves contain underscores:
    COOKBOOKVENDOR_REPOSITORY_DEFAULT_BRANCH=main sets
    repository.default_branch. Variables naming no known setting are ignored.
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key in ENV_RESERVED:
            continue

        name = env_key[len(ENV_PREFIX):].lower()
        for section, settings in config.items():
            if not isinstance(settings, dict) or not name.startswith(f"{section}_"):
                continue
            key = name[len(section) + 1:]
            if key in settings:
                try:
                    settings[key] = coerce_env_value(settings[key], value)
                except ConfigError as e:
                    raise ConfigError(f"{env_key}: {e}") from e
                logger.debug(f"{env_key} overrides {section}.{key}")
            break

    return config


TRUE_VALUES = ('true', 'yes', 'on', '1')
FALSE_VALUES = ('false', 'no', 'off', '0')


def coerce_env_value(default, value):
    """
    Convert an environment string to the type of the setting it overrides.

    Strings stay strings, so a branch or tag named "2024" or "true" is kept
    as written.
    """
    if isinstance(default, bool):
        if value.lower() in TRUE_VALUES:
            return True
        if value.lower() in FALSE_VALUES:
            return False
        raise ConfigError(f"Expected a boolean, got '{value}'")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError as e:
            raise ConfigError(f"Expected an integer, got '{value}'") from e
    if isinstance(default, list):
        return split_path_list(value)
    return value


def split_path_list(value):
    """Split a colon-separated path list, dropping empty entries."""
    return [part for part in value.split(':') if part]
