"""Exception hierarchy for agentthreads.

Each failure mode of tool dispatch and entity management gets its own
type so callers (HTTP surface, SDK bridge, CLI) can map them precisely.
"""

from __future__ import annotations

from typing import Any


class AgentThreadsError(Exception):
    """Base exception for all agentthreads errors."""


class ToolInputError(AgentThreadsError):
    """Raw tool input did not match the tool's input model.

    Also used as a value: ``AgentTool.decode_input`` returns it instead of
    raising so that ``initial_title`` can still produce a label.
    """

    def __init__(self, tool_name: str, raw: Any, errors: list[dict[str, Any]] | None = None):
        self.tool_name = tool_name
        self.raw = raw
        self.errors = errors or []
        summary = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ())) or 'input'}: {e.get('msg', 'invalid')}"
            for e in self.errors
        )
        super().__init__(
            f"Invalid input for tool '{tool_name}'" + (f": {summary}" if summary else "")
        )


class UnknownToolError(AgentThreadsError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' is not registered")


class ToolCallCancelledError(AgentThreadsError):
    """A tool call was stopped before it finished."""

    def __init__(self, tool_call_id: str):
        self.tool_call_id = tool_call_id
        super().__init__(f"Tool call {tool_call_id} was cancelled")


class ToolCallConflictError(AgentThreadsError):
    """A tool call with the same ID is still in flight."""

    def __init__(self, tool_call_id: str):
        self.tool_call_id = tool_call_id
        super().__init__(f"Tool call {tool_call_id} is already running")


class EntityError(AgentThreadsError):
    """Base for entity store failures."""


class EntityReleasedError(EntityError):
    """The entity no longer exists in the store."""

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"Entity {entity_id} has been released")


class EntityTypeError(EntityError):
    """A handle was used against an entity of a different type."""

    def __init__(self, entity_id: str, expected: type, actual: type):
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Entity {entity_id} is a {actual.__name__}, not a {expected.__name__}"
        )


class StoreClosedError(EntityError):
    """The entity store has been shut down."""

    def __init__(self) -> None:
        super().__init__("Entity store is closed")


class ExecutorUnavailableError(AgentThreadsError):
    """Work could not be scheduled."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Executor unavailable: {reason}")
