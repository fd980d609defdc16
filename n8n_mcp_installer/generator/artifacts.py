"""
Builder for the n8n credential and workflow node artifacts.

The bundle has three parts:
- credential: an mcpClientApi credential holding the launch command
- listToolsNode: a workflow fragment with an MCP Client node listing tools
- executeToolNode: a workflow fragment with an MCP Client node executing a tool
"""

import re
import secrets
from typing import Any

from ..core.models import ResolvedCommand

CREDENTIAL_TYPE = "mcpClientApi"
NODE_TYPE = "n8n-nodes-mcp.mcpClientTool"
NODE_TYPE_VERSION = 1

LIST_TOOLS_POSITION = [580, 700]
EXECUTE_TOOL_POSITION = [620, 740]

EXECUTE_TOOL_PARAMETERS = {
    "operation": "executeTool",
    "toolName": "={{ $fromAI(\"tool\",\"Set this with specific tool name\") }}",
    "toolParameters": "={{ /*n8n-auto-generated-fromAI-override*/ $fromAI('Tool_Parameters', ``, 'json') }}",
}


def display_name(package_name: str) -> str:
    """
    Clean up a package name for labels.

    Strips a leading '@' and replaces the first '/' with '-',
    so "@scope/tool" becomes "scope-tool".
    """
    return re.sub(r"^@", "", package_name).replace("/", "-", 1)


def _workflow_fragment(
    node_name: str,
    parameters: dict[str, Any],
    position: list[int],
    credential: dict[str, Any],
    instance_id: str,
) -> dict[str, Any]:
    node = {
        "parameters": parameters,
        "type": NODE_TYPE,
        "typeVersion": NODE_TYPE_VERSION,
        "position": list(position),
        "id": secrets.token_hex(16),
        "name": node_name,
        "credentials": {
            CREDENTIAL_TYPE: {
                "id": credential["id"],
                "name": credential["name"],
            }
        },
    }

    return {
        "nodes": [node],
        "connections": {node_name: {"ai_tool": [[]]}},
        "pinData": {},
        "meta": {
            "templateCredsSetupCompleted": True,
            "instanceId": instance_id,
        },
    }


def generate_artifacts(
    package_name: str,
    command: ResolvedCommand,
    credential_name: str | None = None,
) -> dict[str, Any]:
    """
    Generate the credential and workflow fragments for an installed server.

    Every call draws fresh random identifiers, so installing the same
    package twice produces unrelated credential and node ids.

    Args:
        package_name: Package name as installed
        command: Launch command the credential should hold
        credential_name: Override for the credential's display name

    Returns:
        Dict with 'credential', 'listToolsNode' and 'executeToolNode'

    Example:
        >>> cmd = ResolvedCommand.build("npx", ["@scope/tool"])
        >>> generate_artifacts("@scope/tool", cmd)["credential"]["name"]
        'scope-tool MCP'
    """
    clean_name = display_name(package_name)

    credential = {
        "id": secrets.token_hex(8),
        "name": credential_name or f"{clean_name} MCP",
        "data": command.to_dict(),
        "type": CREDENTIAL_TYPE,
    }

    # Both fragments belong to the same workflow instance
    instance_id = secrets.token_hex(32)

    list_tools = _workflow_fragment(
        f"MCP Client {clean_name} Tools",
        {},
        LIST_TOOLS_POSITION,
        credential,
        instance_id,
    )
    execute_tool = _workflow_fragment(
        f"{clean_name} Tools Execute",
        dict(EXECUTE_TOOL_PARAMETERS),
        EXECUTE_TOOL_POSITION,
        credential,
        instance_id,
    )

    return {
        "credential": credential,
        "listToolsNode": list_tools,
        "executeToolNode": execute_tool,
    }
