"""
Command dispatch for the installer.

Maps a command name and an argument bag onto one of the install or
diagnostic operations and wraps the outcome in a ToolResult. No
exception escapes dispatch(); failures become error results.
"""

import json
import logging
import os
import platform
import shlex
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .core import (
    PROBE_CANDIDATES,
    ConfigError,
    InstallError,
    InstallOutcome,
    InvalidInputError,
    MissingPrerequisiteError,
    PackageNotFoundError,
    PackageRef,
    ProcessRunner,
    SubprocessRunner,
    get_config_dir,
    list_known_packages,
    load_known_packages_from_env,
    probe_version,
    save_config,
)
from .core.installer import Installer
from .generator import generate_artifacts

logger = logging.getLogger(__name__)

# Quieten httpx request logging
logging.getLogger("httpx").setLevel(logging.WARNING)

NAME_PARAMETERS = ("name", "packageName", "repository")
CONFIG_NOT_SAVED = "Could not save configuration file"


@dataclass
class ToolResult:
    """Uniform result envelope: human-readable text plus an error flag."""
    text: str
    is_error: bool = False


def _as_list(value: Any) -> list[str]:
    """Normalise an args/env parameter to a list of strings."""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, dict):
        return [f"{k}={v}" for k, v in value.items()]
    return [str(v) for v in value]


def _first_name(arguments: dict[str, Any]) -> str | None:
    for key in NAME_PARAMETERS:
        value = arguments.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class Dispatcher:
    """
    Routes commands to installer operations.

    Commands:
    - install_repo_mcp_server: install from npm or a Python index
    - install_local_mcp_server: install from a local checkout
    - debug_python_installation: report which package managers are present
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        installer: Installer | None = None,
        config_dir: Path | None = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            runner: ProcessRunner (default: SubprocessRunner)
            installer: Installer (default: one built on runner)
            config_dir: Where config files are written (default: get_config_dir())
        """
        self.runner = runner or SubprocessRunner()
        self.installer = installer or Installer(self.runner)
        self.config_dir = config_dir
        load_known_packages_from_env()

    @property
    def commands(self) -> dict[str, Callable[[dict[str, Any]], ToolResult]]:
        return {
            "install_repo_mcp_server": self.install_repo_mcp_server,
            "install_local_mcp_server": self.install_local_mcp_server,
            "debug_python_installation": self.debug_python_installation,
        }

    def dispatch(self, command: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Run a command and return its result envelope.

        Args:
            command: Command name
            arguments: Command arguments

        Returns:
            ToolResult; is_error is set for unknown commands and any failure
        """
        handler = self.commands.get(command)
        if handler is None:
            return ToolResult(
                f"Unknown command '{command}'. "
                f"Available commands: {', '.join(sorted(self.commands))}",
                is_error=True,
            )

        logger.info(f"Processing command '{command}'")
        try:
            return handler(arguments or {})
        except MissingPrerequisiteError as e:
            logger.error(f"Missing prerequisite: {e}")
            return ToolResult(f"Missing prerequisite: {e}", is_error=True)
        except InvalidInputError as e:
            logger.error(f"Invalid input: {e}")
            return ToolResult(f"Invalid input: {e}", is_error=True)
        except PackageNotFoundError as e:
            logger.error(f"{e}")
            return ToolResult(f"{e}", is_error=True)
        except InstallError as e:
            logger.error(f"Installation failed: {e}")
            return ToolResult(f"Installation failed: {e}", is_error=True)
        except Exception as e:
            logger.exception(f"Command '{command}' failed")
            return ToolResult(f"Error running {command}: {e}", is_error=True)

    def install_repo_mcp_server(self, arguments: dict[str, Any]) -> ToolResult:
        """Handle install_repo_mcp_server."""
        name = _first_name(arguments)
        if name is None:
            raise InvalidInputError(
                f"A package name is required (one of: {', '.join(NAME_PARAMETERS)})"
            )

        ref = PackageRef(
            name=name,
            args=_as_list(arguments.get("args")),
            env=_as_list(arguments.get("env")),
        )

        channel = self.installer.classify(ref.name)
        logger.info(f"Installing {ref.name} via {channel.value}...")
        outcome = self.installer.install(ref, channel)

        return self._finish(outcome, arguments.get("credentialName"), bool(arguments.get("debug")))

    def install_local_mcp_server(self, arguments: dict[str, Any]) -> ToolResult:
        """Handle install_local_mcp_server."""
        path = arguments.get("path")
        if not isinstance(path, str) or not path.strip():
            raise InvalidInputError("A local path is required")

        outcome = self.installer.install_local(
            path.strip(),
            args=_as_list(arguments.get("args")),
            env=_as_list(arguments.get("env")),
        )

        return self._finish(outcome, arguments.get("credentialName"), bool(arguments.get("debug")))

    def _finish(self, outcome: InstallOutcome, credential_name: str | None, debug: bool) -> ToolResult:
        bundle = generate_artifacts(outcome.name, outcome.command, credential_name or None)

        try:
            config_file = str(save_config(bundle, outcome.name, self.config_dir))
        except ConfigError as e:
            logger.warning(f"{e}")
            config_file = CONFIG_NOT_SAVED

        return ToolResult(format_install_report(outcome, bundle, config_file, debug))

    def debug_python_installation(self, arguments: dict[str, Any]) -> ToolResult:
        """Handle debug_python_installation. Never fails."""
        lines = ["=== Package Manager Diagnostics ===", ""]

        for tool in PROBE_CANDIDATES:
            try:
                version = probe_version(self.runner, tool)
            except Exception as e:
                logger.debug(f"Probe {tool} raised: {e}")
                version = None

            if version is None:
                lines.append(f"✗ {tool}: not found")
            else:
                lines.append(f"✓ {tool}: found ({version})" if version else f"✓ {tool}: found")

        try:
            manager = self.installer.python.select_manager()
            selected = manager.name if manager else "none"
        except Exception as e:
            logger.debug(f"Python manager selection raised: {e}")
            selected = "none"

        lines += [
            "",
            f"Selected Python package manager: {selected}",
            "",
            "=== Known Packages ===",
        ]
        lines += [f"  {name} ({channel.value})" for name, channel in list_known_packages()]
        lines += [
            "",
            "=== Environment ===",
            f"Python executable: {sys.executable}",
            f"Python version: {sys.version.split()[0]}",
            f"Platform: {platform.platform()}",
            f"Working directory: {os.getcwd()}",
            f"Config directory: {self.config_dir or get_config_dir()}",
            "PATH:",
        ]
        lines += [f"  {entry}" for entry in os.environ.get("PATH", "").split(os.pathsep) if entry]

        return ToolResult("\n".join(lines))


def format_install_report(
    outcome: InstallOutcome,
    bundle: dict[str, Any],
    config_file: str,
    debug: bool = False,
) -> str:
    """
    Render the success body for an install.

    Args:
        outcome: Install outcome
        bundle: Generated artifacts
        config_file: Saved path, or the could-not-save marker
        debug: Include executed commands and their output

    Returns:
        Multi-line text
    """
    command = outcome.command
    lines = [
        "=== n8n MCP Server Integration ===",
        "",
        f"Package {outcome.name} installed successfully via {outcome.channel.value}!",
        f"Command: {' '.join([command.command, *command.args])}",
        f"Companion: {outcome.companion_message}",
        "",
        "1. Add this credential in n8n:",
        json.dumps(bundle["credential"], indent=2),
        "",
        "2. Use this JSON for List Tools workflow:",
        json.dumps(bundle["listToolsNode"], indent=2),
        "",
        "3. Use this JSON for Execute Tool workflow:",
        json.dumps(bundle["executeToolNode"], indent=2),
        "",
        f"Configuration saved to: {config_file}",
    ]

    if debug:
        lines += ["", "=== Debug ==="]
        for result in outcome.executed:
            lines.append(f"$ {' '.join(result.argv)} (exit {result.returncode})")
            if result.output:
                lines.append(result.output)

    return "\n".join(lines)
