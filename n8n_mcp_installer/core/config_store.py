"""Persistence for generated n8n configuration bundles."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from .models import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".n8n-mcp-configs"


def get_config_dir() -> Path:
    """
    Get the directory generated configuration files are written to.

    The directory is determined by:
    1. Environment variable N8N_MCP_CONFIGS_HOME if set
    2. Otherwise, ~/.n8n-mcp-configs

    The directory is not created here; save_config creates it on demand.

    Returns:
        Path to the configuration directory
    """
    env_home = os.environ.get("N8N_MCP_CONFIGS_HOME")
    if env_home:
        return Path(env_home)
    return Path.home() / CONFIG_DIR_NAME


def config_file_name(package_name: str) -> str:
    """
    Build the config filename for a package.

    Every '@' and '/' is replaced with '-', so "@scope/tool" becomes
    "-scope-tool-config.json".
    """
    clean_name = re.sub(r"[@/]", "-", package_name)
    return f"{clean_name}-config.json"


def config_path(package_name: str, config_dir: Path | None = None) -> Path:
    """
    Get the path for a package's configuration file.

    Args:
        package_name: Package name as installed
        config_dir: Directory override (default: get_config_dir())

    Returns:
        Path to the configuration file
    """
    base_dir = config_dir if config_dir is not None else get_config_dir()
    return base_dir / config_file_name(package_name)


def save_config(bundle: dict[str, Any], package_name: str, config_dir: Path | None = None) -> Path:
    """
    Save an artifact bundle as pretty-printed JSON.

    An existing file for the same package is overwritten.

    Args:
        bundle: Artifact bundle from generate_artifacts()
        package_name: Package name the bundle belongs to
        config_dir: Directory override (default: get_config_dir())

    Returns:
        Path to the saved file

    Raises:
        ConfigError: If the directory or file cannot be written
    """
    path = config_path(package_name, config_dir)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(bundle, f, indent=2, ensure_ascii=False)
        logger.debug(f"Saved configuration to {path}")
        return path
    except OSError as e:
        raise ConfigError(f"Failed to save configuration to {path}: {e}")


def load_config(package_name: str, config_dir: Path | None = None) -> dict[str, Any]:
    """
    Load a previously saved artifact bundle.

    Args:
        package_name: Package name the bundle belongs to
        config_dir: Directory override (default: get_config_dir())

    Returns:
        The loaded bundle

    Raises:
        ConfigError: If the file does not exist or JSON is invalid
    """
    path = config_path(package_name, config_dir)

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.debug(f"Loaded configuration from {path}")
        return data
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to load configuration from {path}: {e}")
