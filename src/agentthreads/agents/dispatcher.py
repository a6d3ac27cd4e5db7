"""Tool registry and dispatcher.

Tools are registered once and invoked by name with raw input. The
dispatcher decodes the input, publishes the tool's initial title, runs
the tool as a tracked (cancellable) task and reports the outcome on the
event bus.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from agentthreads.agents.task_registry import (
    has_active_task,
    register_task,
    unregister_task,
)
from agentthreads.agents.tools.base import AgentTool
from agentthreads.entities import EntityStore
from agentthreads.errors import (
    AgentThreadsError,
    ToolCallCancelledError,
    ToolCallConflictError,
    ToolInputError,
    UnknownToolError,
)
from agentthreads.events import EventBus, ToolCallEventStream, ToolCallStatus

logger = logging.getLogger(__name__)


@dataclass
class ToolCallResult:
    """Outcome of a successful tool call."""

    tool_call_id: str
    tool_name: str
    title: str
    output: Any


def new_tool_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:16]}"


class ToolDispatcher:
    def __init__(self, store: EntityStore, bus: EventBus):
        self.store = store
        self.bus = bus
        self._tools: dict[str, AgentTool[Any, Any]] = {}

    def register(self, tool: AgentTool[Any, Any]) -> None:
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool {tool.name} ({tool.kind})")

    def get(self, name: str) -> AgentTool[Any, Any]:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def tools(self) -> list[AgentTool[Any, Any]]:
        return [self._tools[name] for name in sorted(self._tools)]

    async def dispatch(
        self, name: str, raw_input: Any, tool_call_id: str | None = None
    ) -> ToolCallResult:
        """Run the tool registered under ``name``.

        Raises:
            UnknownToolError: No such tool.
            ToolInputError: ``raw_input`` does not decode; ``run`` is not called.
            ToolCallConflictError: ``tool_call_id`` is still in flight.
            ToolCallCancelledError: The call was stopped via ``stop``.
            AgentThreadsError: Whatever the tool's ``run`` raised.
        """
        tool = self.get(name)
        tool_call_id = tool_call_id or new_tool_call_id()
        if has_active_task(tool_call_id):
            raise ToolCallConflictError(tool_call_id)
        stream = ToolCallEventStream(self.bus, tool_call_id, tool.name, str(tool.kind))

        decoded = tool.decode_input(raw_input)
        title = tool.initial_title(decoded)
        stream.update(title=title, status=ToolCallStatus.PENDING)

        if isinstance(decoded, ToolInputError):
            logger.info(f"[TOOL] {tool_call_id} {tool.name}: {decoded}")
            stream.update(status=ToolCallStatus.FAILED, error=str(decoded))
            raise decoded

        stream.update(status=ToolCallStatus.IN_PROGRESS)
        task = asyncio.create_task(tool.run(decoded, stream, self.store))
        register_task(tool_call_id, task, tool.name)
        try:
            output = await task
        except asyncio.CancelledError:
            stream.update(status=ToolCallStatus.FAILED, error="cancelled")
            current = asyncio.current_task()
            if task.cancelled() and not (current and current.cancelling()):
                raise ToolCallCancelledError(tool_call_id) from None
            raise
        except AgentThreadsError as e:
            logger.warning(f"[TOOL] {tool_call_id} {tool.name} failed: {e}")
            stream.update(status=ToolCallStatus.FAILED, error=str(e))
            raise
        finally:
            unregister_task(tool_call_id, task)

        stream.update(status=ToolCallStatus.COMPLETED, output=output)
        logger.debug(f"[TOOL] {tool_call_id} {tool.name} completed")
        return ToolCallResult(
            tool_call_id=tool_call_id,
            tool_name=tool.name,
            title=title,
            output=output,
        )
