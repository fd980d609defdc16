"""Install channels for the package ecosystems the installer supports."""

from .base import ChannelInstaller
from .npm import NpmChannel
from .python import PythonChannel

__all__ = ["ChannelInstaller", "NpmChannel", "PythonChannel"]
