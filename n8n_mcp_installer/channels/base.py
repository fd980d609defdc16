"""Base class for install channels."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

from n8n_mcp_installer.core.models import InstallChannel, PackageRef, ResolvedCommand
from n8n_mcp_installer.core.runner import ProcessRunner, Strategy


class ChannelInstaller(ABC):
    """
    Abstract base class for channel-specific install logic.

    Each distribution ecosystem (npm, Python) has its own implementation
    that knows how to check availability, install, and launch a package.
    """

    # Where users can get the channel's tooling if it is missing
    remediation_url: str = ""

    def __init__(self, runner: ProcessRunner):
        """
        Initialize the channel with a process runner.

        Args:
            runner: ProcessRunner used for every external command
        """
        self.runner = runner

    @property
    @abstractmethod
    def channel(self) -> InstallChannel:
        """
        Return the channel this installer handles.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check whether the channel's package manager is installed.

        Returns:
            True if installs through this channel can be attempted
        """
        pass

    @abstractmethod
    def install_strategies(self, name: str) -> Iterator[Strategy]:
        """
        Yield the install attempts for a package, primary first.

        Exactly two attempts are produced: the primary scope and the
        alternate scope fallback.

        Args:
            name: Package name

        Returns:
            Iterator of Strategy objects
        """
        pass

    @abstractmethod
    def resolve_command(self, ref: PackageRef) -> ResolvedCommand:
        """
        Build the command the workflow platform will use to launch the package.

        Args:
            ref: Package reference with launch args and env

        Returns:
            ResolvedCommand for the credential artifact
        """
        pass
