"""
Artifact Generation

This module provides functionality for generating the n8n credential
and workflow node JSON for an installed MCP server.
"""

from .artifacts import generate_artifacts, display_name

__all__ = [
    "generate_artifacts",
    "display_name",
]
