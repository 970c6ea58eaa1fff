#!/usr/bin/env python3
"""
Configuration management for algocoach.
User preferences live in ~/.algocoach/config.json (ALGOCOACH_HOME overrides
the directory).
"""

import os
import json
import logging
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    'log_level': 'WARNING',
    'test_command': None,
    'test_timeout': 30.0,
    'debounce_seconds': 1.5,
    'script_filenames': ['trainer.yaml', 'trainer.yml', 'trainer.json'],
}


def get_config_dir() -> Path:
    """Get the algocoach config directory (~/.algocoach)"""
    override = os.environ.get('ALGOCOACH_HOME')
    config_dir = Path(override).expanduser() if override else Path.home() / '.algocoach'
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the config file path"""
    return get_config_dir() / 'config.json'


def _load_user_config() -> Dict[str, Any]:
    config_path = get_config_path()
    if not config_path.exists():
        return {}
    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", config_path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", config_path)
        return {}
    return data


def load_config() -> Dict[str, Any]:
    """Load configuration, with defaults for anything the user has not set"""
    config = dict(DEFAULTS)
    config.update(_load_user_config())
    return config


def save_config(config: Dict[str, Any]) -> None:
    """Save configuration to file (only values that differ from the defaults)"""
    config_path = get_config_path()
    overrides = {key: value for key, value in config.items() if DEFAULTS.get(key, object()) != value}
    with open(config_path, 'w') as f:
        json.dump(overrides, f, indent=2)


def get_config_value(key: str, default: Any = None) -> Any:
    """Get a specific config value"""
    config = load_config()
    value = config.get(key)
    return default if value is None else value


def set_config_value(key: str, value: Any) -> None:
    """Set a specific config value"""
    config = _load_user_config()
    config[key] = value
    save_config(config)
