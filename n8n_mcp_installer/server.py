"""MCP server exposing the installer commands over stdio."""

import logging

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations

from .dispatcher import Dispatcher, ToolResult

logger = logging.getLogger(__name__)

SERVER_NAME = "n8n-mcp-installer"

_MUTATING = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False)
_READ_ONLY = ToolAnnotations(readOnlyHint=True)


def _unwrap(result: ToolResult) -> str:
    # Error results surface to the client with isError set
    if result.is_error:
        raise ToolError(result.text)
    return result.text


def build_server(dispatcher: Dispatcher | None = None) -> FastMCP:
    """
    Create the MCP server and register the installer tools.

    Args:
        dispatcher: Dispatcher to route calls through (default: a new one)

    Returns:
        Configured FastMCP instance
    """
    dispatcher = dispatcher or Dispatcher()
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(annotations=_MUTATING)
    def install_repo_mcp_server(
        name: str | None = None,
        packageName: str | None = None,
        repository: str | None = None,
        args: list[str] | None = None,
        env: list[str] | None = None,
        credentialName: str | None = None,
        debug: bool = False,
    ) -> str:
        """Install an MCP server from npm or a Python index and generate n8n configuration.

        Args:
            name: Package name (packageName and repository are accepted aliases)
            args: Extra arguments passed to the server on launch
            env: Environment assignments in KEY=VALUE form
            credentialName: Display name for the generated n8n credential
            debug: Include executed commands and their output
        """
        return _unwrap(dispatcher.dispatch("install_repo_mcp_server", {
            "name": name,
            "packageName": packageName,
            "repository": repository,
            "args": args,
            "env": env,
            "credentialName": credentialName,
            "debug": debug,
        }))

    @mcp.tool(annotations=_MUTATING)
    def install_local_mcp_server(
        path: str,
        args: list[str] | None = None,
        env: list[str] | None = None,
        credentialName: str | None = None,
    ) -> str:
        """Install an MCP server from a local directory and generate n8n configuration.

        Args:
            path: Directory containing package.json or pyproject.toml
            args: Extra arguments passed to the server on launch
            env: Environment assignments in KEY=VALUE form
            credentialName: Display name for the generated n8n credential
        """
        return _unwrap(dispatcher.dispatch("install_local_mcp_server", {
            "path": path,
            "args": args,
            "env": env,
            "credentialName": credentialName,
        }))

    @mcp.tool(annotations=_READ_ONLY)
    def debug_python_installation() -> str:
        """Report which Node and Python package managers are available."""
        return _unwrap(dispatcher.dispatch("debug_python_installation", {}))

    logger.debug("Registered installer tools")
    return mcp


def run_server(dispatcher: Dispatcher | None = None) -> None:
    """Run the MCP server on stdio until the client disconnects."""
    logger.info(f"Starting {SERVER_NAME} on stdio")
    build_server(dispatcher).run("stdio")
