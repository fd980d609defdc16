"""Runs installs for a classified channel or a local checkout."""

import json
import logging
import sys
import tomllib
from pathlib import Path
from typing import Any

import httpx

from n8n_mcp_installer.core.locator import classify, get_installer_for_channel
from n8n_mcp_installer.core.models import (
    CommandResult,
    InstallChannel,
    InstallError,
    InstallOutcome,
    InvalidInputError,
    MissingPrerequisiteError,
    PackageNotFoundError,
    PackageRef,
    ResolvedCommand,
)
from n8n_mcp_installer.core.probe import probe
from n8n_mcp_installer.core.runner import ProcessRunner, Strategy, run_first_success
from n8n_mcp_installer.channels.npm import NpmChannel
from n8n_mcp_installer.channels.python import PythonChannel

logger = logging.getLogger(__name__)

# n8n community node that provides the MCP client
COMPANION_PACKAGE = "n8n-nodes-mcp"
N8N_NODES_DIR = Path(".n8n") / "nodes"

NODE_MANIFEST = "package.json"
PYTHON_MANIFEST = "pyproject.toml"
DEFAULT_NODE_ENTRY = "index.js"


class Installer:
    """
    Installs MCP server packages and the n8n companion node.

    Features:
    - Channel classification (npm or Python)
    - One alternate-scope fallback per install
    - Non-fatal companion package install
    - Installs from a local checkout with a package.json or pyproject.toml
    """

    def __init__(
        self,
        runner: ProcessRunner,
        http_client: httpx.Client | None = None,
        home: Path | None = None,
        python_executable: str | None = None,
    ):
        """
        Initialize the installer.

        Args:
            runner: ProcessRunner for every external command
            http_client: Optional httpx client for npm registry searches
            home: Home directory (default: Path.home())
            python_executable: Interpreter for local Python installs
                (default: sys.executable)
        """
        self.runner = runner
        self.home = home if home is not None else Path.home()
        self.python_executable = python_executable or sys.executable
        self.npm = NpmChannel(runner, http_client=http_client, home=self.home)
        self.python = PythonChannel(runner)

    def classify(self, name: str) -> InstallChannel:
        """Classify a package name into a channel."""
        return classify(name, self.npm, self.python)

    def install(self, ref: PackageRef, channel: InstallChannel) -> InstallOutcome:
        """
        Install a package through its channel.

        Args:
            ref: Package to install
            channel: Channel from classify()

        Returns:
            InstallOutcome with the resolved launch command

        Raises:
            PackageNotFoundError: If the channel is UNKNOWN
            MissingPrerequisiteError: If the channel's package manager is missing
            InstallError: If the install and its fallback both fail
        """
        if channel == InstallChannel.UNKNOWN:
            raise PackageNotFoundError(
                f"Package {ref.name} was not found. Please check the name and try again."
            )

        channel_installer = get_installer_for_channel(channel, [self.npm, self.python])
        if not channel_installer.is_available():
            raise MissingPrerequisiteError(
                f"The {channel.value} package manager is not installed.",
                remediation=channel_installer.remediation_url,
            )

        executed: list[CommandResult] = []
        run_first_success(self.runner, channel_installer.install_strategies(ref.name), executed)
        logger.info(f"Installed {ref.name} via {channel.value}")

        command = channel_installer.resolve_command(ref)
        outcome = InstallOutcome(name=ref.name, channel=channel, command=command, executed=executed)
        self._ensure_companion(outcome)
        return outcome

    def companion_strategies(self) -> list[Strategy]:
        """Local n8n nodes directory first, global install as fallback."""
        nodes_dir = self.home / N8N_NODES_DIR
        return [
            Strategy(
                description=f"Installing {COMPANION_PACKAGE} into {nodes_dir}",
                argv=("npm", "install", "--prefix", str(nodes_dir), COMPANION_PACKAGE),
            ),
            Strategy(
                description=f"Installing {COMPANION_PACKAGE} globally",
                argv=("npm", "install", "-g", COMPANION_PACKAGE),
            ),
        ]

    def ensure_companion(self, executed: list[CommandResult] | None = None) -> tuple[bool, str]:
        """
        Make sure the n8n MCP client node is installed.

        Failure is never fatal; it is logged and reported back.

        Returns:
            (installed, human-readable status message)
        """
        logger.info(f"Checking if {COMPANION_PACKAGE} is installed...")
        nodes_dir = self.home / N8N_NODES_DIR
        for argv in (
            ["npm", "list", "--prefix", str(nodes_dir), COMPANION_PACKAGE],
            ["npm", "list", "-g", COMPANION_PACKAGE],
        ):
            check = self.runner.run(argv)
            if executed is not None:
                executed.append(check)

            if check.ok:
                return True, f"{COMPANION_PACKAGE} is already installed"

        try:
            run_first_success(self.runner, self.companion_strategies(), executed)
        except InstallError as e:
            logger.warning(f"Could not install {COMPANION_PACKAGE}: {e}")
            return False, (
                f"Could not install {COMPANION_PACKAGE}. "
                f"Install it from the n8n community nodes settings."
            )

        return True, f"{COMPANION_PACKAGE} installed"

    def _ensure_companion(self, outcome: InstallOutcome) -> None:
        installed, message = self.ensure_companion(outcome.executed)
        outcome.companion_installed = installed
        outcome.companion_message = message

    def install_local(
        self,
        path: str | Path,
        args: list[str] | None = None,
        env: list[str] | None = None,
    ) -> InstallOutcome:
        """
        Install a server from a local directory.

        Args:
            path: Directory containing package.json or pyproject.toml
            args: Extra launch arguments
            env: KEY=VALUE environment assignments

        Returns:
            InstallOutcome with the resolved launch command

        Raises:
            InvalidInputError: If the path is missing or has no manifest
            MissingPrerequisiteError: If npm is needed but not installed
            InstallError: If the dependency install fails
        """
        directory = Path(path).expanduser()
        if not directory.exists():
            raise InvalidInputError(f"Path does not exist: {directory}")
        if not directory.is_dir():
            raise InvalidInputError(f"Path is not a directory: {directory}")

        directory = directory.resolve()

        if (directory / NODE_MANIFEST).is_file():
            outcome = self._install_local_node(directory, args or [], env or [])
        elif (directory / PYTHON_MANIFEST).is_file():
            outcome = self._install_local_python(directory, args or [], env or [])
        else:
            raise InvalidInputError(
                f"No {NODE_MANIFEST} or {PYTHON_MANIFEST} found in {directory}"
            )

        self._ensure_companion(outcome)
        return outcome

    def _install_local_node(self, directory: Path, args: list[str], env: list[str]) -> InstallOutcome:
        manifest = _read_json_manifest(directory / NODE_MANIFEST)
        name = _manifest_name(manifest.get("name"), directory, NODE_MANIFEST)
        entry = node_entry_point(manifest)
        logger.info(f"Local npm package '{name}' with entry {entry}")

        if not probe(self.runner, "npm"):
            raise MissingPrerequisiteError(
                "npm is not installed.", remediation=self.npm.remediation_url
            )

        executed: list[CommandResult] = []
        run_first_success(
            self.runner,
            [Strategy(f"Installing dependencies for {name}", ("npm", "install"), cwd=directory)],
            executed,
        )

        ref = PackageRef(name=name, args=args, env=env)
        command = ResolvedCommand.build(
            "node", [str(directory / entry), *ref.args], ref.env_map()
        )
        return InstallOutcome(name=name, channel=InstallChannel.NPM, command=command, executed=executed)

    def _install_local_python(self, directory: Path, args: list[str], env: list[str]) -> InstallOutcome:
        try:
            with open(directory / PYTHON_MANIFEST, "rb") as f:
                manifest = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise InvalidInputError(f"Invalid {PYTHON_MANIFEST} in {directory}: {e}")

        project = manifest.get("project", {})
        if not isinstance(project, dict):
            raise InvalidInputError(f"[project] in {PYTHON_MANIFEST} must be a table")
        name = _manifest_name(project.get("name"), directory, PYTHON_MANIFEST)
        scripts = project.get("scripts") or {}
        if not isinstance(scripts, dict):
            raise InvalidInputError(f"[project.scripts] in {PYTHON_MANIFEST} must be a table")
        logger.info(f"Local Python package '{name}'")

        executed: list[CommandResult] = []
        run_first_success(
            self.runner,
            [
                Strategy(
                    f"Installing {name} in editable mode",
                    (self.python_executable, "-m", "pip", "install", "-e", str(directory)),
                )
            ],
            executed,
        )

        ref = PackageRef(name=name, args=args, env=env)
        if scripts:
            script = next(iter(scripts))
            command = ResolvedCommand.build(script, list(ref.args), ref.env_map())
        else:
            module = name.replace("-", "_")
            command = ResolvedCommand.build(
                self.python_executable, ["-m", module, *ref.args], ref.env_map()
            )
        return InstallOutcome(name=name, channel=InstallChannel.PYTHON, command=command, executed=executed)


def _read_json_manifest(path: Path) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in {path}: {e}")

    if not isinstance(data, dict):
        raise InvalidInputError(f"Unexpected manifest format in {path}")
    return data


def _manifest_name(value: Any, directory: Path, manifest_file: str) -> str:
    """The manifest name, or the directory name when it is absent or empty."""
    if value is None:
        return directory.name
    if not isinstance(value, str):
        raise InvalidInputError(f"\"name\" in {manifest_file} must be a string")
    return value.strip() or directory.name


def node_entry_point(manifest: dict[str, Any]) -> str:
    """
    Pick the script to run from a package.json.

    Preference: bin (string, or first entry of the mapping), then main,
    then index.js.

    Raises:
        InvalidInputError: If bin or main has the wrong type
    """
    bin_field = manifest.get("bin")
    if bin_field is not None and not isinstance(bin_field, (str, dict)):
        raise InvalidInputError(f"\"bin\" in {NODE_MANIFEST} must be a string or an object")
    if isinstance(bin_field, str) and bin_field:
        return bin_field
    if isinstance(bin_field, dict) and bin_field:
        entry = next(iter(bin_field.values()))
        if not isinstance(entry, str) or not entry:
            raise InvalidInputError(f"\"bin\" entries in {NODE_MANIFEST} must be non-empty strings")
        return entry

    main = manifest.get("main")
    if main is not None and not isinstance(main, str):
        raise InvalidInputError(f"\"main\" in {NODE_MANIFEST} must be a string")
    if main:
        return main

    return DEFAULT_NODE_ENTRY
