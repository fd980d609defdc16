"""Main CLI entry point for the n8n MCP installer."""

import argparse
import logging
import sys

from n8n_mcp_installer.dispatcher import Dispatcher, ToolResult

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def _emit(result: ToolResult) -> None:
    if result.is_error:
        print(f"Error: {result.text}", file=sys.stderr)
        sys.exit(1)
    print(result.text)


def cmd_serve(args):
    """Handle the serve command - run the MCP server on stdio."""
    from n8n_mcp_installer.server import run_server

    run_server()


def cmd_install(args):
    """Handle the install command."""
    result = Dispatcher().dispatch("install_repo_mcp_server", {
        "name": args.name,
        "args": args.arg,
        "env": args.env,
        "credentialName": args.credential_name,
        "debug": args.debug,
    })
    _emit(result)


def cmd_install_local(args):
    """Handle the install-local command."""
    result = Dispatcher().dispatch("install_local_mcp_server", {
        "path": args.path,
        "args": args.arg,
        "env": args.env,
        "credentialName": args.credential_name,
        "debug": args.debug,
    })
    _emit(result)


def cmd_debug(args):
    """Handle the debug command."""
    _emit(Dispatcher().dispatch("debug_python_installation", {}))


def _add_launch_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--arg",
        action="append",
        default=[],
        help="Argument passed to the server on launch (repeatable)",
    )
    parser.add_argument(
        "--env",
        action="append",
        default=[],
        help="Environment assignment KEY=VALUE (repeatable)",
    )
    parser.add_argument("--credential-name", help="Display name for the n8n credential")
    parser.add_argument("--debug", action="store_true", help="Show executed commands and output")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="n8n-mcp-installer",
        description="Install MCP servers and generate n8n configuration",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the MCP server on stdio")
    serve_parser.set_defaults(func=cmd_serve)

    # Install command
    install_parser = subparsers.add_parser("install", help="Install an MCP server package")
    install_parser.add_argument("name", help="Package name (e.g., '@modelcontextprotocol/server-memory')")
    _add_launch_options(install_parser)
    install_parser.set_defaults(func=cmd_install)

    # Install-local command
    local_parser = subparsers.add_parser("install-local", help="Install an MCP server from a local directory")
    local_parser.add_argument("path", help="Directory containing package.json or pyproject.toml")
    _add_launch_options(local_parser)
    local_parser.set_defaults(func=cmd_install_local)

    # Debug command
    debug_parser = subparsers.add_parser("debug", help="Report available package managers")
    debug_parser.set_defaults(func=cmd_debug)

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
