"""Core data models for the n8n MCP installer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class InstallChannel(Enum):
    """Distribution ecosystem a package is installed from."""
    NPM = "npm"
    PYTHON = "python"
    UNKNOWN = "unknown"


def parse_env(entries: list[str] | None) -> dict[str, str | None]:
    """
    Turn a list of KEY=VALUE strings into an ordered mapping.

    Entries without '=' are kept with a None value.

    Args:
        entries: Environment assignments, e.g. ["API_KEY=abc"]

    Returns:
        Mapping of variable name to value
    """
    env: dict[str, str | None] = {}
    for entry in entries or []:
        if "=" in entry:
            key, value = entry.split("=", 1)
            env[key] = value
        else:
            env[entry] = None
    return env


@dataclass
class PackageRef:
    """A package the user asked to install, plus how it should be launched."""
    name: str
    args: list[str] = field(default_factory=list)
    env: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidInputError("Package name must not be empty")
        self.name = self.name.strip()

    def env_map(self) -> dict[str, str | None]:
        """Return the environment assignments as a mapping."""
        return parse_env(self.env)


@dataclass(frozen=True)
class ResolvedCommand:
    """The concrete invocation the generated artifacts reference."""
    command: str
    args: tuple[str, ...] = ()
    env: tuple[tuple[str, str | None], ...] = ()

    @classmethod
    def build(
        cls,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str | None] | None = None,
    ) -> "ResolvedCommand":
        """Create a ResolvedCommand from plain list/dict values."""
        return cls(
            command=command,
            args=tuple(args or []),
            env=tuple((env or {}).items()),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the credential 'data' shape."""
        return {
            "command": self.command,
            "args": list(self.args),
            "env": dict(self.env),
        }


@dataclass
class CommandResult:
    """Outcome of a single subprocess invocation."""
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stdout/stderr, stripped."""
        parts = [p.strip() for p in (self.stdout, self.stderr) if p and p.strip()]
        return "\n".join(parts)


@dataclass
class InstallOutcome:
    """Everything an install produced, used to render the result body."""
    name: str
    channel: InstallChannel
    command: ResolvedCommand
    executed: list[CommandResult] = field(default_factory=list)
    companion_installed: bool = False
    companion_message: str = ""


class MissingPrerequisiteError(Exception):
    """Raised when a required runtime or package manager is not installed."""

    def __init__(self, message: str, remediation: str | None = None):
        if remediation:
            message = f"{message} Install it from {remediation}"
        super().__init__(message)
        self.remediation = remediation


class PackageNotFoundError(Exception):
    """Raised when a package cannot be classified into any channel."""
    pass


class InstallError(Exception):
    """Raised when an install command fails after its fallback attempt."""

    def __init__(self, message: str, output: str = ""):
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)
        self.output = output


class InvalidInputError(Exception):
    """Raised when a command is called with missing or invalid arguments."""
    pass


class ConfigError(Exception):
    """Raised when there is an error loading or saving configuration."""
    pass
