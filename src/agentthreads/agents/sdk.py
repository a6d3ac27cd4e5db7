"""Expose registered tools to a Claude agent as an in-process MCP server."""

import logging
from typing import Any

from claude_agent_sdk import create_sdk_mcp_server, tool

from agentthreads import __version__
from agentthreads.agents.dispatcher import ToolDispatcher
from agentthreads.agents.tools.base import AgentTool
from agentthreads.errors import AgentThreadsError

logger = logging.getLogger(__name__)

SERVER_NAME = "agentthreads"


def to_sdk_tool(agent_tool: AgentTool[Any, Any], dispatcher: ToolDispatcher):
    """Wrap an agent tool so the SDK routes calls through the dispatcher."""

    @tool(agent_tool.name, agent_tool.description, agent_tool.input_schema())
    async def handler(args: dict[str, Any]) -> dict[str, Any]:
        try:
            result = await dispatcher.dispatch(agent_tool.name, args)
        except AgentThreadsError as e:
            return {
                "content": [{"type": "text", "text": f"Error: {e}"}],
                "is_error": True,
            }
        return {"content": [{"type": "text", "text": str(result.output)}]}

    return handler


def create_tool_server(dispatcher: ToolDispatcher):
    """Build the MCP server config to pass in ``ClaudeAgentOptions.mcp_servers``."""
    tools = [to_sdk_tool(t, dispatcher) for t in dispatcher.tools()]
    logger.debug(f"Exposing {len(tools)} tools via SDK MCP server {SERVER_NAME!r}")
    return create_sdk_mcp_server(name=SERVER_NAME, version=__version__, tools=tools)


def allowed_tool_names(dispatcher: ToolDispatcher) -> list[str]:
    return [f"mcp__{SERVER_NAME}__{t.name}" for t in dispatcher.tools()]
