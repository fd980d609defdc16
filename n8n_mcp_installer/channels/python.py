"""Python channel implementation."""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from n8n_mcp_installer.core.models import InstallChannel, PackageRef, ResolvedCommand
from n8n_mcp_installer.core.probe import probe
from n8n_mcp_installer.core.runner import ProcessRunner, Strategy
from .base import ChannelInstaller

logger = logging.getLogger(__name__)

# PEP 508 project name grammar
_PROJECT_NAME_RE = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)


def is_valid_project_name(name: str) -> bool:
    """Check whether a name is a valid Python distribution name."""
    return bool(_PROJECT_NAME_RE.match(name))


@dataclass(frozen=True)
class PythonManager:
    """
    One Python package manager and how to install and launch with it.

    Install commands and launcher arguments are templates in which
    "{name}" is replaced by the package name.
    """
    name: str
    install: tuple[str, ...]
    fallback_install: tuple[str, ...]
    launcher: str
    launcher_args: tuple[str, ...] = ()

    def render(self, template: tuple[str, ...], package: str) -> tuple[str, ...]:
        return tuple(part.replace("{name}", package) for part in template)


# Preference order: modern managers first, legacy pip last
PYTHON_MANAGERS = [
    PythonManager(
        name="uv",
        install=("uv", "tool", "install", "{name}"),
        fallback_install=("uv", "pip", "install", "--system", "{name}"),
        launcher="uvx",
        launcher_args=("{name}",),
    ),
    PythonManager(
        name="pipx",
        install=("pipx", "install", "{name}"),
        fallback_install=("pipx", "install", "--global", "{name}"),
        launcher="pipx",
        launcher_args=("run", "{name}"),
    ),
    PythonManager(
        name="pip3",
        install=("pip3", "install", "--user", "{name}"),
        fallback_install=("pip3", "install", "{name}"),
        launcher="{name}",
    ),
    PythonManager(
        name="pip",
        install=("pip", "install", "--user", "{name}"),
        fallback_install=("pip", "install", "{name}"),
        launcher="{name}",
    ),
]


class PythonChannel(ChannelInstaller):
    """
    Installs packages with the best available Python package manager.
    """

    remediation_url = "https://docs.astral.sh/uv/getting-started/installation/"

    def __init__(self, runner: ProcessRunner, managers: list[PythonManager] | None = None):
        super().__init__(runner)
        self.managers = managers if managers is not None else PYTHON_MANAGERS
        self._selected: PythonManager | None = None

    @property
    def channel(self) -> InstallChannel:
        """Return the Python channel."""
        return InstallChannel.PYTHON

    def select_manager(self) -> PythonManager | None:
        """
        Pick the first manager whose version probe succeeds.

        Probes run on every call; the result is kept for the install
        that follows.

        Returns:
            The selected PythonManager, or None if none is available
        """
        self._selected = None
        for manager in self.managers:
            if probe(self.runner, manager.name):
                logger.info(f"Using Python package manager: {manager.name}")
                self._selected = manager
                return manager

        logger.warning("No Python package manager found")
        return None

    def is_available(self) -> bool:
        """Check that at least one Python package manager can be executed."""
        return self.select_manager() is not None

    def _require_manager(self) -> PythonManager:
        # Reuse the manager chosen by the preceding is_available() check
        manager = self._selected or self.select_manager()
        if manager is None:
            # Callers check is_available first
            raise RuntimeError("No Python package manager selected")
        return manager

    def install_strategies(self, name: str) -> Iterator[Strategy]:
        """Primary scope install, then the manager's alternate scope."""
        manager = self._require_manager()
        yield Strategy(
            description=f"Installing {name} with {manager.name}",
            argv=manager.render(manager.install, name),
        )
        yield Strategy(
            description=f"Retrying {name} with {manager.name} at alternate scope",
            argv=manager.render(manager.fallback_install, name),
        )

    def resolve_command(self, ref: PackageRef) -> ResolvedCommand:
        """Launch through the selected manager's runner, or the console script."""
        manager = self._require_manager()
        launcher = manager.launcher.replace("{name}", ref.name)
        args = [*manager.render(manager.launcher_args, ref.name), *ref.args]
        return ResolvedCommand.build(launcher, args, ref.env_map())
