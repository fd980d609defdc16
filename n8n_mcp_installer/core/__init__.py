"""Core components for the n8n MCP installer."""

from .models import (
    InstallChannel,
    PackageRef,
    ResolvedCommand,
    CommandResult,
    InstallOutcome,
    parse_env,
    MissingPrerequisiteError,
    PackageNotFoundError,
    InstallError,
    InvalidInputError,
    ConfigError,
)
from .registry import (
    register_known_package,
    get_known_channel,
    list_known_packages,
    load_known_packages_from_env,
    reset_registry,
)
from .config_store import (
    get_config_dir,
    config_file_name,
    config_path,
    save_config,
    load_config,
)
from .runner import ProcessRunner, SubprocessRunner, Strategy, run_first_success
from .probe import PROBE_CANDIDATES, probe, probe_version

__all__ = [
    "InstallChannel",
    "PackageRef",
    "ResolvedCommand",
    "CommandResult",
    "InstallOutcome",
    "parse_env",
    "MissingPrerequisiteError",
    "PackageNotFoundError",
    "InstallError",
    "InvalidInputError",
    "ConfigError",
    "register_known_package",
    "get_known_channel",
    "list_known_packages",
    "load_known_packages_from_env",
    "reset_registry",
    "get_config_dir",
    "config_file_name",
    "config_path",
    "save_config",
    "load_config",
    "ProcessRunner",
    "SubprocessRunner",
    "Strategy",
    "run_first_success",
    "PROBE_CANDIDATES",
    "probe",
    "probe_version",
]
