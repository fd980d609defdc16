"""Registry of packages whose channel is known without a network lookup."""

import logging
import os

from .models import InstallChannel

logger = logging.getLogger(__name__)

# Extra entries as "name=channel" pairs separated by commas
KNOWN_PACKAGES_ENV = "N8N_MCP_KNOWN_PACKAGES"

# Well-known MCP servers published to npm
DEFAULT_KNOWN_PACKAGES: dict[str, InstallChannel] = {
    "@modelcontextprotocol/server-filesystem": InstallChannel.NPM,
    "@modelcontextprotocol/server-github": InstallChannel.NPM,
    "@modelcontextprotocol/server-memory": InstallChannel.NPM,
    "@modelcontextprotocol/server-puppeteer": InstallChannel.NPM,
    "@modelcontextprotocol/server-brave-search": InstallChannel.NPM,
    "@modelcontextprotocol/server-everything": InstallChannel.NPM,
    "@modelcontextprotocol/server-sequential-thinking": InstallChannel.NPM,
    "@playwright/mcp": InstallChannel.NPM,
    "firecrawl-mcp": InstallChannel.NPM,
    "tavily-mcp": InstallChannel.NPM,
    "mcp-server-fetch": InstallChannel.PYTHON,
    "mcp-server-git": InstallChannel.PYTHON,
    "mcp-server-time": InstallChannel.PYTHON,
}

# In-memory storage for known packages
_KNOWN: dict[str, InstallChannel] = dict(DEFAULT_KNOWN_PACKAGES)


def register_known_package(name: str, channel: InstallChannel) -> None:
    """
    Register a package name with a fixed channel.

    Args:
        name: Package name exactly as the user would type it
        channel: Channel to install it from

    Note:
        If the name already exists with another channel, it is overwritten.
    """
    if name in _KNOWN and _KNOWN[name] != channel:
        logger.warning(f"Package '{name}' already known. Overwriting.")

    _KNOWN[name] = channel
    logger.info(f"Registered known package: {name} ({channel.value})")


def get_known_channel(name: str) -> InstallChannel | None:
    """
    Look up the channel for a known package.

    Returns:
        The registered channel, or None if the name is not known
    """
    return _KNOWN.get(name)


def list_known_packages() -> list[tuple[str, InstallChannel]]:
    """
    List all known packages.

    Returns:
        (name, channel) pairs sorted by name
    """
    return sorted(_KNOWN.items())


def reset_registry() -> None:
    """
    Restore the registry to its default contents.

    This is primarily intended for testing.
    """
    global _KNOWN
    _KNOWN = dict(DEFAULT_KNOWN_PACKAGES)
    logger.debug("Registry reset")


def load_known_packages_from_env(value: str | None = None) -> int:
    """
    Register extra known packages from N8N_MCP_KNOWN_PACKAGES.

    The value looks like "my-server=npm,my_tool=python". Malformed
    entries are logged and skipped.

    Args:
        value: Raw setting (default: read from the environment)

    Returns:
        Number of packages registered
    """
    if value is None:
        value = os.environ.get(KNOWN_PACKAGES_ENV, "")

    count = 0
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue

        name, sep, channel_value = entry.rpartition("=")
        name = name.strip()
        try:
            channel = InstallChannel(channel_value.strip().lower())
        except ValueError:
            channel = None

        if not sep or not name or channel in (None, InstallChannel.UNKNOWN):
            logger.warning(f"Ignoring invalid {KNOWN_PACKAGES_ENV} entry: '{entry}'")
            continue

        register_known_package(name, channel)
        count += 1

    return count
