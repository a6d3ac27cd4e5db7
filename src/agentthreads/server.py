"""agentthreads API - FastAPI surface for tool dispatch and thread inspection."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from agentthreads import __version__
from agentthreads.agents.task_registry import clear_all_tasks, stop_task
from agentthreads.config import Settings, configure_logging, load_settings
from agentthreads.errors import (
    EntityError,
    ExecutorUnavailableError,
    ToolCallCancelledError,
    ToolCallConflictError,
    ToolInputError,
    UnknownToolError,
)
from agentthreads.events import EventBus
from agentthreads.thread import Thread
from agentthreads.workspace import Workspace, build_workspace

logger = logging.getLogger(__name__)


class ToolCallRequest(BaseModel):
    input: Any = Field(default_factory=dict, description="Raw tool input")
    toolCallId: str | None = Field(None, min_length=1, max_length=128)


class ToolCallResponse(BaseModel):
    toolCallId: str
    toolName: str
    title: str
    output: Any


class ToolResponse(BaseModel):
    name: str
    kind: str
    description: str
    inputSchema: dict[str, Any]


class ThreadResponse(BaseModel):
    id: str
    title: str
    model: str | None
    resolvedModel: str
    workDir: str
    contextServers: list[str]
    createdAt: str


def _sse_message(event: dict[str, Any]) -> dict[str, str]:
    return {
        "event": event["type"],
        "data": json.dumps(event["data"]),
        "id": str(event["_seq_id"]),
    }


async def sse_events(
    bus: EventBus,
    queue: asyncio.Queue[dict[str, Any]],
    last_event_id: int | None,
    heartbeat: float,
) -> AsyncIterator[dict[str, str]]:
    """Yield SSE messages for a queue already subscribed to ``bus``.

    Missed events are replayed first. Queued events at or below the last
    replayed id are skipped so nothing is delivered twice.
    """
    try:
        yield {"event": "connected", "data": json.dumps({"lastEventId": bus.last_seq})}

        sent = 0
        if last_event_id is not None:
            missed = bus.events_since(last_event_id)
            if missed:
                logger.info(f"[SSE] Replaying {len(missed)} missed events")
            for event in missed:
                yield _sse_message(event)
                sent = event["_seq_id"]

        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat)
                if event.get("type") == "shutdown":
                    break
                if event["_seq_id"] <= sent:
                    continue
                yield _sse_message(event)
            except TimeoutError:
                yield {"comment": "heartbeat"}
    finally:
        bus.unsubscribe(queue)


def _workspace(request: Request) -> Workspace:
    return request.app.state.workspace


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await clear_all_tasks()
        app.state.workspace = build_workspace(settings)
        logger.info("agentthreads API started")
        yield
        logger.info("agentthreads API shutting down")
        await clear_all_tasks()
        await app.state.workspace.close()
        logger.info("agentthreads API shutdown complete")

    app = FastAPI(
        title="agentthreads API",
        description="Dispatch agent tools and inspect the threads they create",
        version=__version__,
        lifespan=lifespan,
    )

    # NOTE: No authentication. Intended for local use only.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_msg = str(exc) or type(exc).__name__
        logger.exception(f"Unhandled error: {error_msg}")
        return JSONResponse(
            status_code=500,
            content={"detail": error_msg, "type": type(exc).__name__},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/api/tools", response_model=list[ToolResponse])
    async def list_tools(request: Request) -> list[dict[str, Any]]:
        """List registered tools with their input schemas."""
        return [
            {
                "name": tool.name,
                "kind": str(tool.kind),
                "description": tool.description,
                "inputSchema": tool.input_schema(),
            }
            for tool in _workspace(request).dispatcher.tools()
        ]

    @app.post("/api/tools/{name}/calls", response_model=ToolCallResponse)
    async def call_tool(name: str, body: ToolCallRequest, request: Request) -> dict[str, Any]:
        """Invoke a tool by name with raw input."""
        dispatcher = _workspace(request).dispatcher
        try:
            result = await dispatcher.dispatch(name, body.input, tool_call_id=body.toolCallId)
        except UnknownToolError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except ToolInputError as e:
            raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})
        except ToolCallCancelledError as e:
            raise HTTPException(status_code=499, detail=str(e))
        except (ToolCallConflictError, EntityError) as e:
            raise HTTPException(status_code=409, detail=str(e))
        except ExecutorUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e))

        return {
            "toolCallId": result.tool_call_id,
            "toolName": result.tool_name,
            "title": result.title,
            "output": result.output,
        }

    @app.post("/api/tool-calls/{tool_call_id}/stop")
    async def stop_tool_call(tool_call_id: str) -> dict[str, bool]:
        """Cancel an in-flight tool call."""
        if not stop_task(tool_call_id):
            raise HTTPException(status_code=404, detail="No active tool call with this ID")
        return {"success": True}

    @app.get("/api/threads", response_model=list[ThreadResponse])
    async def list_threads(request: Request) -> list[dict[str, Any]]:
        workspace = _workspace(request)
        return [workspace.thread_to_dict(t) for t in workspace.threads()]

    @app.get("/api/threads/{thread_id}", response_model=ThreadResponse)
    async def get_thread(thread_id: str, request: Request) -> dict[str, Any]:
        workspace = _workspace(request)
        thread = workspace.store.lookup(thread_id, Thread)
        if thread is None:
            raise HTTPException(status_code=404, detail="Thread not found")
        return workspace.thread_to_dict(thread)

    @app.get("/api/threads/{thread_id}/system-prompt")
    async def get_system_prompt(thread_id: str, request: Request) -> dict[str, str]:
        workspace = _workspace(request)
        thread = workspace.store.lookup(thread_id, Thread)
        if thread is None:
            raise HTTPException(status_code=404, detail="Thread not found")
        return {"prompt": workspace.store.get(thread).system_prompt(workspace.store)}

    @app.get("/api/events/stream")
    async def stream_events(request: Request, last_event_id: int | None = None) -> EventSourceResponse:
        """SSE stream of tool-call updates and thread events.

        Supports reconnection recovery via the last_event_id query parameter.
        """
        workspace = _workspace(request)
        bus = workspace.bus
        heartbeat = workspace.settings.heartbeat_seconds
        queue = bus.subscribe()

        return EventSourceResponse(sse_events(bus, queue, last_event_id, heartbeat))

    return app


app = create_app()
