"""Tool-call event stream and the in-process event bus behind it.

Events are plain dicts ``{"type": ..., "data": ...}`` tagged with a
monotonically increasing ``_seq_id``. A bounded replay buffer lets SSE
clients resume from the last id they saw.
"""

import asyncio
import logging
from collections import deque
from enum import StrEnum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ToolCallStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ToolCallUpdate(BaseModel):
    """A progress report for one tool call."""

    seq: int
    tool_call_id: str
    tool_name: str
    kind: str
    title: str | None = None
    status: ToolCallStatus | None = None
    output: Any = None
    error: str | None = None


class EventBus:
    """Fan events out to subscriber queues and keep a replay buffer."""

    def __init__(self, buffer_size: int = 500):
        self._subscribers: list[asyncio.Queue[dict[str, Any]]] = []
        self._buffer: deque[dict[str, Any]] = deque(maxlen=buffer_size)
        self._seq = 0

    @property
    def last_seq(self) -> int:
        return self._seq

    @property
    def next_seq(self) -> int:
        return self._seq + 1

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def publish(self, event_type: str, data: dict[str, Any]) -> int:
        """Publish an event to every subscriber. Returns its sequence id."""
        self._seq += 1
        event = {"type": event_type, "data": data, "_seq_id": self._seq}
        self._buffer.append(event)
        for queue in self._subscribers:
            queue.put_nowait(event)
        return self._seq

    def events_since(self, seq_id: int) -> list[dict[str, Any]]:
        """Buffered events newer than ``seq_id`` (oldest first)."""
        return [e for e in self._buffer if e["_seq_id"] > seq_id]

    def shutdown(self) -> None:
        """Tell every subscriber to stop."""
        for queue in self._subscribers:
            queue.put_nowait({"type": "shutdown", "data": {}})
        logger.debug(f"Event bus shut down ({len(self._subscribers)} subscribers)")
        self._subscribers.clear()


class ToolCallEventStream:
    """Per-call handle a tool uses to report progress."""

    def __init__(self, bus: EventBus, tool_call_id: str, tool_name: str, kind: str):
        self.bus = bus
        self.tool_call_id = tool_call_id
        self.tool_name = tool_name
        self.kind = kind

    def update(self, **fields: Any) -> ToolCallUpdate:
        update = ToolCallUpdate(
            seq=self.bus.next_seq,
            tool_call_id=self.tool_call_id,
            tool_name=self.tool_name,
            kind=self.kind,
            **fields,
        )
        self.bus.publish("tool_call_update", update.model_dump(mode="json", exclude_none=True))
        return update
