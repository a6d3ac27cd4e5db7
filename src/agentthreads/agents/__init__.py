"""Agent module for agentthreads.

Architecture:
    server.py / cli.py
        ↓ build
    workspace.py (EntityStore + shared project dependencies)
        ↓ registers tools with
    dispatcher.py (ToolDispatcher)
        ↓ runs
    tools/*.py (CreateThreadTool, ...)
        ↑ exposed to the Claude SDK by
    sdk.py
"""

from agentthreads.agents.dispatcher import ToolCallResult, ToolDispatcher
from agentthreads.agents.tools import (
    AgentTool,
    CreateThreadTool,
    CreateThreadToolInput,
    ToolKind,
)

__all__ = [
    "AgentTool",
    "CreateThreadTool",
    "CreateThreadToolInput",
    "ToolCallResult",
    "ToolDispatcher",
    "ToolKind",
]
