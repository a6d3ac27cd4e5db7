"""Track in-flight tool calls for cancellation.

This module provides a simple registry of running asyncio tasks keyed by
tool-call ID, allowing a call to be stopped from the HTTP surface.
"""

import asyncio
import logging
from dataclasses import dataclass

from agentthreads.errors import ToolCallConflictError

logger = logging.getLogger(__name__)


@dataclass
class ActiveTask:
    """Represents an in-flight tool call."""
    task: asyncio.Task
    tool_call_id: str
    tool_name: str


# Registry of active tasks keyed by tool_call_id
_active_tasks: dict[str, ActiveTask] = {}


def register_task(tool_call_id: str, task: asyncio.Task, tool_name: str = "") -> None:
    """Register a task for tracking.

    Callers must check ``has_active_task`` first; a still-running task under
    the same tool_call_id is never replaced.

    Args:
        tool_call_id: The tool call this task executes
        task: The asyncio task to track
        tool_name: Name of the tool being run

    Raises:
        ToolCallConflictError: Another task for tool_call_id is still running
    """
    if has_active_task(tool_call_id):
        raise ToolCallConflictError(tool_call_id)
    _active_tasks[tool_call_id] = ActiveTask(task=task, tool_call_id=tool_call_id, tool_name=tool_name)
    logger.debug(f"Registered task for tool call {tool_call_id}")


def unregister_task(tool_call_id: str, task: asyncio.Task | None = None) -> None:
    """Unregister a task when it completes.

    When ``task`` is given, the entry is only removed if it still belongs to
    that task.
    """
    active = _active_tasks.get(tool_call_id)
    if active is None or (task is not None and active.task is not task):
        return
    del _active_tasks[tool_call_id]
    logger.debug(f"Unregistered task for tool call {tool_call_id}")


def stop_task(tool_call_id: str) -> bool:
    """Stop an in-flight tool call.

    Returns:
        True if a task was found and cancelled, False otherwise
    """
    active = _active_tasks.pop(tool_call_id, None)
    if active and not active.task.done():
        active.task.cancel()
        logger.info(f"Cancelled task for tool call {tool_call_id} ({active.tool_name})")
        return True
    return False


def has_active_task(tool_call_id: str) -> bool:
    active = _active_tasks.get(tool_call_id)
    return active is not None and not active.task.done()


async def clear_all_tasks() -> None:
    """Cancel and clear all tracked tasks (for hot reload/shutdown)."""
    cancelled_count = 0
    for tool_call_id, active in _active_tasks.items():
        if not active.task.done():
            active.task.cancel()
            cancelled_count += 1
            logger.debug(f"Cancelled task for tool call {tool_call_id}")
    if cancelled_count:
        await asyncio.sleep(0)  # Give tasks a chance to handle cancellation
    _active_tasks.clear()
    logger.info(f"Cleared all tracked tasks ({cancelled_count} cancelled)")
