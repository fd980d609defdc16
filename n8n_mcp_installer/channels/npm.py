"""npm channel implementation."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx

from n8n_mcp_installer.core.models import InstallChannel, PackageRef, ResolvedCommand
from n8n_mcp_installer.core.probe import probe
from n8n_mcp_installer.core.runner import ProcessRunner, Strategy
from .base import ChannelInstaller

logger = logging.getLogger(__name__)

# Public npm registry search endpoint
SEARCH_URL = "https://registry.npmjs.org/-/v1/search"
SEARCH_SIZE = 20

LAUNCHER = "npx"
USER_PREFIX_DIR = ".npm-global"


def is_scoped_name(name: str) -> bool:
    """
    Check whether a name follows npm's scope convention.

    Args:
        name: Package name

    Returns:
        True for "@scope/pkg" style names or anything containing '/'
    """
    return name.startswith("@") or "/" in name


class NpmChannel(ChannelInstaller):
    """
    Installs packages globally with npm and launches them with npx.
    """

    remediation_url = "https://nodejs.org/"

    def __init__(
        self,
        runner: ProcessRunner,
        http_client: httpx.Client | None = None,
        home: Path | None = None,
        timeout_seconds: float = 10.0,
    ):
        super().__init__(runner)
        self.http_client = http_client
        self.home = home if home is not None else Path.home()
        self.timeout_seconds = timeout_seconds

    @property
    def channel(self) -> InstallChannel:
        """Return the npm channel."""
        return InstallChannel.NPM

    def is_available(self) -> bool:
        """Check that npm can be executed."""
        return probe(self.runner, "npm")

    def lookups(self) -> list[tuple[str, Callable[[str], bool]]]:
        """
        Ordered remote lookups used to decide if a name exists on npm.
        """
        return [
            ("npm view", self.view_version),
            ("registry search", self.search_registry),
        ]

    def package_exists(self, name: str) -> bool:
        """
        Check whether a package exists on npm.

        Tries each lookup in order and stops at the first that succeeds.

        Args:
            name: Package name

        Returns:
            True if any lookup found the package
        """
        for label, lookup in self.lookups():
            if lookup(name):
                logger.info(f"Found '{name}' on npm via {label}")
                return True
            logger.debug(f"Lookup '{label}' did not find '{name}'")
        return False

    def view_version(self, name: str) -> bool:
        """Ask npm for the package's published version."""
        result = self.runner.run(["npm", "view", name, "version"])
        return result.ok

    def search_registry(self, name: str) -> bool:
        """
        Search the npm registry and accept only an exact name match.

        Network failures are logged and reported as "not found".
        """
        params = {"text": name, "size": SEARCH_SIZE}
        try:
            logger.debug(f"Searching npm registry for '{name}'")
            if self.http_client is not None:
                response = self.http_client.get(SEARCH_URL, params=params)
            else:
                response = httpx.get(SEARCH_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            data = response.json()

        except httpx.HTTPStatusError as e:
            logger.warning(f"npm registry search failed: HTTP {e.response.status_code}")
            return False
        except httpx.RequestError as e:
            logger.warning(f"Failed to connect to npm registry: {e}")
            return False
        except ValueError as e:
            logger.warning(f"Invalid response from npm registry: {e}")
            return False

        for entry in data.get("objects", []):
            package = entry.get("package") or {}
            if package.get("name") == name:
                return True

        return False

    def install_strategies(self, name: str) -> Iterator[Strategy]:
        """Global install, then the same install under the user prefix."""
        yield Strategy(
            description=f"Installing {name} globally with npm",
            argv=("npm", "install", "-g", name),
        )
        prefix = self.home / USER_PREFIX_DIR
        yield Strategy(
            description=f"Installing {name} under {prefix}",
            argv=("npm", "install", "-g", "--prefix", str(prefix), name),
        )

    def resolve_command(self, ref: PackageRef) -> ResolvedCommand:
        """Launch through npx with the package name as first argument."""
        return ResolvedCommand.build(LAUNCHER, [ref.name, *ref.args], ref.env_map())
