"""Shared fixtures for installer tests."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from n8n_mcp_installer.core.models import CommandResult
from n8n_mcp_installer.core.registry import reset_registry
from n8n_mcp_installer.core.runner import ProcessRunner


class FakeRunner(ProcessRunner):
    """
    In-memory ProcessRunner.

    Commands are matched by their longest registered argv prefix. Anything
    unregistered behaves like a missing executable (exit code 127).
    """

    def __init__(self):
        self.responses: dict[tuple[str, ...], CommandResult] = {}
        self.calls: list[list[str]] = []
        self.cwds: list[Path | None] = []

    def set(self, *argv: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[tuple(argv)] = CommandResult(
            argv=list(argv), returncode=returncode, stdout=stdout, stderr=stderr
        )

    def run(self, argv: list[str], cwd: Path | None = None) -> CommandResult:
        self.calls.append(list(argv))
        self.cwds.append(cwd)

        for length in range(len(argv), 0, -1):
            response = self.responses.get(tuple(argv[:length]))
            if response is not None:
                return CommandResult(
                    argv=list(argv),
                    returncode=response.returncode,
                    stdout=response.stdout,
                    stderr=response.stderr,
                )

        return CommandResult(argv=list(argv), returncode=127, stderr=f"{argv[0]}: not found")

    def called(self, *prefix: str) -> bool:
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


@pytest.fixture(autouse=True)
def clean_registry():
    """Reset the known-package registry before each test."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def runner():
    """A fake process runner with nothing installed."""
    return FakeRunner()


@pytest.fixture
def search_client():
    """An httpx client stand-in whose registry search finds nothing."""
    client = Mock()
    response = Mock()
    response.json.return_value = {"objects": []}
    response.raise_for_status.return_value = None
    client.get.return_value = response
    return client


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Set up a temporary home and config directory."""
    home = tmp_path / "home"
    home.mkdir()
    config_dir = home / ".n8n-mcp-configs"
    monkeypatch.setenv("N8N_MCP_CONFIGS_HOME", str(config_dir))
    return home
