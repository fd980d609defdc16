"""Tests for command dispatch and the result envelope."""

import json
from unittest.mock import patch

import pytest

from n8n_mcp_installer.core.config_store import load_config
from n8n_mcp_installer.core.installer import COMPANION_PACKAGE, Installer
from n8n_mcp_installer.core.models import ConfigError
from n8n_mcp_installer.core.probe import PROBE_CANDIDATES
from n8n_mcp_installer.dispatcher import CONFIG_NOT_SAVED, Dispatcher, ToolResult


@pytest.fixture
def dispatcher(runner, search_client, temp_home):
    installer = Installer(runner, http_client=search_client, home=temp_home)
    return Dispatcher(runner=runner, installer=installer)


@pytest.fixture
def npm_ready(runner):
    runner.set("npm", "--version", stdout="10.0.0")
    runner.set("npm", "install")
    runner.set("npm", "list", "-g", COMPANION_PACKAGE)
    return runner


def test_unknown_command(dispatcher):
    """Test an unknown command yields an error envelope."""
    result = dispatcher.dispatch("uninstall_everything", {})

    assert isinstance(result, ToolResult)
    assert result.is_error
    assert "install_repo_mcp_server" in result.text


@pytest.mark.parametrize("arguments", [{}, {"name": ""}, {"name": "   ", "packageName": None}])
def test_install_repo_requires_name(dispatcher, runner, arguments):
    """Test a missing name is rejected before any subprocess runs."""
    result = dispatcher.dispatch("install_repo_mcp_server", arguments)

    assert result.is_error
    assert "Invalid input" in result.text
    assert runner.calls == []


def test_install_repo_end_to_end(dispatcher, npm_ready, temp_home):
    """Test installing a scoped npm package writes the expected credential."""
    result = dispatcher.dispatch("install_repo_mcp_server", {
        "name": "@scope/tool",
        "args": ["--flag"],
        "env": ["KEY=VALUE"],
    })

    assert not result.is_error
    assert "installed successfully via npm" in result.text

    config_file = temp_home / ".n8n-mcp-configs" / "-scope-tool-config.json"
    assert f"Configuration saved to: {config_file}" in result.text

    credential = load_config("@scope/tool")["credential"]
    assert credential["name"] == "scope-tool MCP"
    assert credential["data"] == {
        "command": "npx",
        "args": ["@scope/tool", "--flag"],
        "env": {"KEY": "VALUE"},
    }


def test_install_repo_alternate_name_spellings(dispatcher, npm_ready):
    """Test packageName and repository are accepted, first non-empty wins."""
    result = dispatcher.dispatch("install_repo_mcp_server", {
        "name": "",
        "packageName": "@first/pkg",
        "repository": "@second/pkg",
    })

    assert not result.is_error
    assert npm_ready.called("npm", "install", "-g", "@first/pkg")
    assert not npm_ready.called("npm", "install", "-g", "@second/pkg")


def test_install_repo_credential_name(dispatcher, npm_ready):
    """Test the credential name override reaches the saved config."""
    dispatcher.dispatch("install_repo_mcp_server", {
        "repository": "@scope/tool",
        "credentialName": "My Tool",
    })

    assert load_config("@scope/tool")["credential"]["name"] == "My Tool"


def test_install_repo_args_as_string(dispatcher, npm_ready):
    """Test args given as one string are split shell-style."""
    dispatcher.dispatch("install_repo_mcp_server", {
        "name": "@scope/tool",
        "args": "--root '/tmp/my dir'",
    })

    data = load_config("@scope/tool")["credential"]["data"]
    assert data["args"] == ["@scope/tool", "--root", "/tmp/my dir"]


def test_install_repo_debug_output(dispatcher, npm_ready):
    """Test debug mode lists executed commands."""
    result = dispatcher.dispatch("install_repo_mcp_server", {"name": "@scope/tool", "debug": True})

    assert "=== Debug ===" in result.text
    assert "$ npm install -g @scope/tool (exit 0)" in result.text


def test_install_repo_missing_python_manager(dispatcher, runner):
    """Test a missing Python manager surfaces a remediation link."""
    result = dispatcher.dispatch("install_repo_mcp_server", {"name": "mcp-server-fetch"})

    assert result.is_error
    assert "Missing prerequisite" in result.text
    assert "https://" in result.text


def test_install_repo_unknown_package(dispatcher, runner):
    """Test an unclassifiable name is reported as not found."""
    runner.set("uv", "--version")

    result = dispatcher.dispatch("install_repo_mcp_server", {"name": "not a package"})

    assert result.is_error
    assert "was not found" in result.text


def test_install_repo_install_failure(dispatcher, runner):
    """Test an install failure becomes an error envelope with output."""
    runner.set("npm", "--version")
    runner.set("npm", "install", returncode=1, stderr="E404 not in this registry")

    result = dispatcher.dispatch("install_repo_mcp_server", {"name": "@scope/missing"})

    assert result.is_error
    assert "Installation failed" in result.text
    assert "E404" in result.text


def test_unexpected_exception_is_caught(dispatcher):
    """Test unexpected errors never escape dispatch."""
    with patch.object(Installer, "classify", side_effect=RuntimeError("boom")):
        result = dispatcher.dispatch("install_repo_mcp_server", {"name": "pkg"})

    assert result.is_error
    assert "boom" in result.text


def test_config_save_failure_is_not_fatal(dispatcher, npm_ready):
    """Test a failed config write still reports success."""
    with patch(
        "n8n_mcp_installer.dispatcher.save_config",
        side_effect=ConfigError("disk full"),
    ):
        result = dispatcher.dispatch("install_repo_mcp_server", {"name": "@scope/tool"})

    assert not result.is_error
    assert f"Configuration saved to: {CONFIG_NOT_SAVED}" in result.text


def test_install_local_requires_path(dispatcher, runner):
    """Test a missing path is invalid input."""
    result = dispatcher.dispatch("install_local_mcp_server", {})

    assert result.is_error
    assert runner.calls == []


def test_install_local_nonexistent_path(dispatcher, runner, tmp_path):
    """Test a nonexistent path is an error."""
    result = dispatcher.dispatch("install_local_mcp_server", {"path": str(tmp_path / "nope")})

    assert result.is_error
    assert "does not exist" in result.text
    assert runner.calls == []


def test_install_local_no_manifest(dispatcher, runner, tmp_path):
    """Test a directory without a manifest is an error with no subprocesses."""
    empty = tmp_path / "empty"
    empty.mkdir()

    result = dispatcher.dispatch("install_local_mcp_server", {"path": str(empty)})

    assert result.is_error
    assert runner.calls == []


def test_install_local_node(dispatcher, npm_ready, tmp_path):
    """Test a local Node server writes its config under the manifest name."""
    project = tmp_path / "server"
    project.mkdir()
    (project / "package.json").write_text(json.dumps({"name": "local-server", "main": "server.js"}))

    result = dispatcher.dispatch("install_local_mcp_server", {
        "path": str(project),
        "env": ["TOKEN=abc"],
    })

    assert not result.is_error
    data = load_config("local-server")["credential"]["data"]
    assert data["command"] == "node"
    assert data["args"] == [str(project.resolve() / "server.js")]
    assert data["env"] == {"TOKEN": "abc"}


def test_debug_report_with_nothing_installed(dispatcher, runner):
    """Test the diagnostic report succeeds when every tool is absent."""
    result = dispatcher.dispatch("debug_python_installation")

    assert not result.is_error
    for tool in PROBE_CANDIDATES:
        assert f"✗ {tool}: not found" in result.text
    assert "Selected Python package manager: none" in result.text


def test_debug_report_with_tools(dispatcher, runner):
    """Test found tools are listed with their version."""
    runner.set("uv", "--version", stdout="uv 0.4.0\n")
    runner.set("node", "--version", stdout="v20.11.0\n")

    result = dispatcher.dispatch("debug_python_installation", {})

    assert "✓ uv: found (uv 0.4.0)" in result.text
    assert "✓ node: found (v20.11.0)" in result.text
    assert "✗ pip: not found" in result.text
    assert "Selected Python package manager: uv" in result.text
    assert "Python executable:" in result.text


def test_manager_choice_not_carried_between_commands(dispatcher, runner):
    """Test each command re-checks which Python manager is installed."""
    runner.set("uv", "--version", stdout="uv 0.4.0\n")
    first = dispatcher.dispatch("debug_python_installation", {})
    assert "Selected Python package manager: uv" in first.text

    del runner.responses[("uv", "--version")]
    second = dispatcher.dispatch("debug_python_installation", {})

    assert "✗ uv: not found" in second.text
    assert "Selected Python package manager: none" in second.text


def test_install_after_manager_removed(dispatcher, runner):
    """Test an install after the manager disappears reports the missing prerequisite."""
    runner.set("uv", "--version")
    dispatcher.dispatch("debug_python_installation", {})
    del runner.responses[("uv", "--version")]

    result = dispatcher.dispatch("install_repo_mcp_server", {"name": "mcp-server-fetch"})

    assert result.is_error
    assert "Missing prerequisite" in result.text
    assert not runner.called("uv", "tool", "install")


def test_debug_report_survives_probe_errors(dispatcher):
    """Test the report never fails even if probing raises."""
    with patch("n8n_mcp_installer.dispatcher.probe_version", side_effect=OSError("weird")):
        result = dispatcher.dispatch("debug_python_installation", {})

    assert not result.is_error
    assert "✗ npm: not found" in result.text


def test_known_packages_from_environment(runner, search_client, temp_home, monkeypatch):
    """Test a package listed in N8N_MCP_KNOWN_PACKAGES skips the npm lookups."""
    monkeypatch.setenv("N8N_MCP_KNOWN_PACKAGES", "acme-weather=python")
    runner.set("uv", "--version")
    runner.set("uv", "tool", "install", "acme-weather")
    installer = Installer(runner, http_client=search_client, home=temp_home)

    result = Dispatcher(runner=runner, installer=installer).dispatch(
        "install_repo_mcp_server", {"name": "acme-weather"}
    )

    assert not result.is_error
    assert "installed successfully via python" in result.text
    assert not runner.called("npm", "view")


def test_debug_report_lists_known_packages(dispatcher):
    """Test the diagnostic report lists the known packages."""
    result = dispatcher.dispatch("debug_python_installation", {})

    assert "=== Known Packages ===" in result.text
    assert "  @playwright/mcp (npm)" in result.text
    assert "  mcp-server-fetch (python)" in result.text


def test_install_local_malformed_manifest(dispatcher, runner, tmp_path):
    """Test a non-string manifest name is reported as invalid input."""
    project = tmp_path / "server"
    project.mkdir()
    (project / "package.json").write_text(json.dumps({"name": 42}))

    result = dispatcher.dispatch("install_local_mcp_server", {"path": str(project)})

    assert result.is_error
    assert "Invalid input" in result.text
    assert '"name" in package.json must be a string' in result.text
    assert runner.calls == []
