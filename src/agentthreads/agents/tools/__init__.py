"""Agent tools for agentthreads.

Each tool subclasses ``AgentTool`` and is registered with a
``ToolDispatcher``, which can in turn expose it to the Claude SDK.
"""

from agentthreads.agents.tools.base import AgentTool, ToolKind
from agentthreads.agents.tools.create_thread import CreateThreadTool, CreateThreadToolInput

__all__ = [
    "AgentTool",
    "ToolKind",
    "CreateThreadTool",
    "CreateThreadToolInput",
]
