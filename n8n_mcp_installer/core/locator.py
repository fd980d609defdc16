"""Decides which channel a package name belongs to."""

import logging

from n8n_mcp_installer.core.models import (
    InstallChannel,
    MissingPrerequisiteError,
    PackageNotFoundError,
)
from n8n_mcp_installer.core.registry import get_known_channel
from n8n_mcp_installer.channels.base import ChannelInstaller
from n8n_mcp_installer.channels.npm import NpmChannel, is_scoped_name
from n8n_mcp_installer.channels.python import PythonChannel, is_valid_project_name

logger = logging.getLogger(__name__)


def get_installer_for_channel(
    channel: InstallChannel,
    installers: list[ChannelInstaller],
) -> ChannelInstaller:
    """
    Get the installer that handles a channel.

    Args:
        channel: Classified channel
        installers: Available channel installers

    Returns:
        ChannelInstaller for the channel

    Raises:
        PackageNotFoundError: If the channel is UNKNOWN or has no installer
    """
    for installer in installers:
        if installer.channel == channel:
            return installer

    raise PackageNotFoundError(
        f"No installer available for channel '{channel.value}'. "
        f"Supported channels: npm, python"
    )


def classify(name: str, npm: NpmChannel, python: PythonChannel) -> InstallChannel:
    """
    Classify a package name into an install channel.

    Rules, first match wins:
    1. Known package registry
    2. npm scope convention ("@scope/pkg" or any '/')
    3. npm lookups (version query, then registry search)
    4. Python, provided a Python package manager is installed

    Args:
        name: Package name
        npm: npm channel used for remote lookups
        python: Python channel used to confirm a manager is available

    Returns:
        The InstallChannel; UNKNOWN if the name fits no channel

    Raises:
        MissingPrerequisiteError: If the package falls through to Python but
            no Python package manager is installed
    """
    logger.info(f"Classifying package '{name}'")

    known = get_known_channel(name)
    if known == InstallChannel.NPM:
        logger.info(f"'{name}' is a known npm package")
        return InstallChannel.NPM

    if known is None:
        if is_scoped_name(name):
            logger.info(f"'{name}' follows the npm scope convention")
            return InstallChannel.NPM

        logger.info(f"Checking if {name} exists on npm...")
        if npm.package_exists(name):
            return InstallChannel.NPM

        logger.info("Not found on npm, checking for Python package...")
        if not is_valid_project_name(name):
            logger.warning(f"'{name}' is not a valid Python package name")
            return InstallChannel.UNKNOWN

    if not python.is_available():
        raise MissingPrerequisiteError(
            f"Package '{name}' was not found on npm and looks like a Python "
            f"package, but no Python package manager (uv, pipx, pip) is installed.",
            remediation=python.remediation_url,
        )

    return InstallChannel.PYTHON
