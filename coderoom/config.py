#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import logging
import sys

import toml
import yaml

from .exceptions import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("coderoom")

CONFIG_FILENAMES = ['config.toml', 'config.yaml', 'config.yml', 'config.json']

DEFAULT_IGNORE_DIR_NAMES = [
    "node_modules",
    ".venv",
    "venv",
    "__pycache__",
    "target",
    "dist",
    "build",
    ".tox",
    ".cargo_home",
    ".cache",
]


def get_config_dir() -> Path:
    return Path.home() / '.coderoom'


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. CODEROOM_CONFIG environment variable
    2. An existing config file in ~/.coderoom/
    3. Default: ~/.coderoom/config.toml (created on first save)
    """
    if 'CODEROOM_CONFIG' in os.environ:
        return Path(os.environ['CODEROOM_CONFIG']).expanduser()

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists():
            return path

    return config_dir / 'config.toml'


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "roots": [],
        "ignore_dir_names": list(DEFAULT_IGNORE_DIR_NAMES),
        "commit_index_branches": 10,
        "commit_index_commits_per_branch": 50,
        "database": {
            "path": "",  # Empty means ~/.coderoom/coderoom.db
        },
        "logging": {
            "level": "INFO",
        },
    }


def load_config() -> Dict[str, Any]:
    """Load configuration from file."""
    config_path = get_config_path()

    # Start with default config
    config = get_default_config()

    # Load from file if it exists
    if config_path.exists():
        try:
            suffix = config_path.suffix.lower()
            if suffix == '.toml':
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif suffix in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")

    # Apply environment variable overrides
    config = apply_env_overrides(config)

    configure_logging(config)
    return config


def save_config(config: Dict[str, Any]) -> Path:
    """
    Save configuration to file.

    The format follows the file suffix: TOML, YAML or JSON.

    Returns:
        Path the configuration was written to

    Raises:
        ConfigError: The file could not be written
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        suffix = config_path.suffix.lower()
        if suffix == '.toml':
            # tomllib is read-only
            with open(config_path, 'w') as f:
                toml.dump(config, f)
        elif suffix in ['.yaml', '.yml']:
            with open(config_path, 'w') as f:
                yaml.safe_dump(config, f, default_flow_style=False)
        else:
            with open(config_path, 'w') as f:
                json.dump(config, f, indent=2)
    except OSError as e:
        raise ConfigError(f"Error saving config to {config_path}: {e}") from e

    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def configure_logging(config: Dict[str, Any]) -> None:
    """Apply logging.level from the configuration to the coderoom logger."""
    level_name = str(config.get('logging', {}).get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if isinstance(level, int):
        logger.setLevel(level)
    else:
        logger.warning(f"Unknown logging level {level_name!r}, keeping {logging.getLevelName(logger.level)}")


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
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            # Override or add new key
            merged[key] = value

    return merged


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.
    Environment variables follow the pattern: CODEROOM_SECTION_KEY
    For example: CODEROOM_COMMIT_INDEX_BRANCHES=20
    """
    env_prefix = "CODEROOM_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        key_parts = env_key[len(env_prefix):].lower().split('_')

        # Convert value
        if value.lower() in ('true', 'yes', 'on'):
            typed_value: Any = True
        elif value.lower() in ('false', 'no', 'off'):
            typed_value = False
        elif value.isdigit():
            typed_value = int(value)
        else:
            typed_value = value

        current_level = config
        i = 0
        while i < len(key_parts):
            # Find the longest key in current_level that is a prefix of the remaining key_parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i : i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key:
                # If we are at the end of the env var, we have found the key to set
                if i + best_match_len == len(key_parts):
                    if isinstance(current_level[matched_key], list) and isinstance(typed_value, str):
                        typed_value = [p for p in typed_value.split(os.pathsep) if p]
                    current_level[matched_key] = typed_value
                    break

                # Otherwise, we descend into the dictionary
                if isinstance(current_level[matched_key], dict):
                    current_level = current_level[matched_key]
                    i += best_match_len
                else:
                    # Path conflict, e.g., env var is longer but we found a non-dict value
                    break
            else:
                # No match found
                break

    return config


def _canonical_dir(path: str) -> str:
    expanded = Path(path).expanduser()
    try:
        return str(expanded.resolve(strict=True))
    except OSError:
        return str(expanded.absolute())


def get_roots(config: Optional[Dict[str, Any]] = None) -> List[str]:
    """Configured scan roots, with ~ expanded."""
    if config is None:
        config = load_config()
    return [os.path.expanduser(r) for r in config.get('roots', [])]


def add_root(path: str) -> Tuple[str, bool]:
    """
    Add a scan root to the configuration file.

    Returns:
        (canonical root, True if it was not configured before)

    Raises:
        ConfigError: The path is not a directory
    """
    root = _canonical_dir(path)
    if not os.path.isdir(root):
        raise ConfigError(f"Not a directory: {path}")

    config = load_config()
    roots = config.setdefault('roots', [])
    if root in roots:
        return root, False
    roots.append(root)
    save_config(config)
    logger.debug(f"Added root {root}")
    return root, True


def remove_root(path: str) -> Tuple[str, bool]:
    """
    Remove a scan root from the configuration file.

    The root does not have to exist on disk any more.

    Returns:
        (canonical root, True if it was configured)
    """
    root = _canonical_dir(path)
    config = load_config()
    roots = config.get('roots', [])
    remaining = [r for r in roots if r not in (root, path)]
    if len(remaining) == len(roots):
        return root, False
    config['roots'] = remaining
    save_config(config)
    return root, True


def get_ignore_dir_names(config: Optional[Dict[str, Any]] = None) -> List[str]:
    """Directory names the scanner never descends into."""
    if config is None:
        config = load_config()
    return list(config.get('ignore_dir_names', DEFAULT_IGNORE_DIR_NAMES))


def _check_dir_name(name: str) -> str:
    name = name.strip()
    if not name or '/' in name or os.sep in name:
        raise ConfigError(f"Invalid directory name: {name!r}")
    return name


def add_ignore_dir_name(name: str) -> bool:
    """
    Add a directory name to the ignore list.

    Returns:
        True if the name was not ignored before

    Raises:
        ConfigError: The name is empty or contains a path separator
    """
    name = _check_dir_name(name)
    config = load_config()
    names = config.setdefault('ignore_dir_names', list(DEFAULT_IGNORE_DIR_NAMES))
    if name in names:
        return False
    names.append(name)
    save_config(config)
    return True


def remove_ignore_dir_name(name: str) -> bool:
    """Remove a directory name from the ignore list. Returns True if it was there."""
    name = _check_dir_name(name)
    config = load_config()
    names = config.get('ignore_dir_names', [])
    if name not in names:
        return False
    config['ignore_dir_names'] = [n for n in names if n != name]
    save_config(config)
    return True


def reset_ignore_dir_names() -> List[str]:
    """Restore the default ignore list."""
    config = load_config()
    config['ignore_dir_names'] = list(DEFAULT_IGNORE_DIR_NAMES)
    save_config(config)
    return list(DEFAULT_IGNORE_DIR_NAMES)


def get_commit_index_limits(config: Optional[Dict[str, Any]] = None) -> Tuple[int, int]:
    """
    Configured commit index limits.

    Returns:
        (branches per repository, commits per branch)

    Raises:
        ConfigError: A limit is not an integer
    """
    if config is None:
        config = load_config()
    try:
        branches = int(config.get('commit_index_branches', 10))
        per_branch = int(config.get('commit_index_commits_per_branch', 50))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid commit index limit: {e}") from e
    return branches, per_branch


def set_commit_index_limits(
    branches: Optional[int] = None,
    commits_per_branch: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Store new commit index limits; None keeps the current value.

    Returns:
        The limits now in effect
    """
    config = load_config()
    if branches is not None:
        config['commit_index_branches'] = int(branches)
    if commits_per_branch is not None:
        config['commit_index_commits_per_branch'] = int(commits_per_branch)
    if branches is not None or commits_per_branch is not None:
        save_config(config)
    return get_commit_index_limits(config)
