"""
Tests for the HTTP surface.

These tests validate:
1. Tool listing and invocation
2. Error status mapping
3. Stopping in-flight calls
4. Thread inspection endpoints
5. SSE replay and heartbeats
"""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from agentthreads.agents.tools import AgentTool, ToolKind
from agentthreads.server import create_app, sse_events
from agentthreads.thread import Thread


class WaitInput(BaseModel):
    label: str = "wait"


class BlockingTool(AgentTool[WaitInput, str]):
    """Runs until cancelled. ``started`` is set from the server's loop thread."""

    name = "wait"
    kind = ToolKind.THINK
    description = "Block until stopped"
    input_model = WaitInput

    def __init__(self):
        self.started = threading.Event()

    def initial_title(self, input):
        return "Wait"

    async def run(self, input, event_stream, cx):
        self.started.set()
        await asyncio.Event().wait()
        return input.label


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture
def blocking(client):
    tool = BlockingTool()
    client.app.state.workspace.dispatcher.register(tool)
    return tool


class TestTools:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_list_tools(self, client):
        response = client.get("/api/tools")
        assert response.status_code == 200
        tools = response.json()
        assert [t["name"] for t in tools] == ["create_thread"]
        assert tools[0]["kind"] == "other"
        assert "title" in tools[0]["inputSchema"]["properties"]

    def test_call_create_thread(self, client):
        response = client.post(
            "/api/tools/create_thread/calls",
            json={"input": {"title": "Code Review"}, "toolCallId": "call_http"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["toolCallId"] == "call_http"
        assert body["title"] == "Create thread: Code Review"

        thread = client.get(f"/api/threads/{body['output']}").json()
        assert thread["title"] == "Code Review"
        assert thread["model"] is None
        assert thread["resolvedModel"] == "claude-sonnet-4-5"

    def test_call_without_input_creates_default_thread(self, client):
        response = client.post("/api/tools/create_thread/calls", json={})
        assert response.status_code == 200
        assert response.json()["title"] == "Create thread"

        threads = client.get("/api/threads").json()
        assert len(threads) == 1
        assert threads[0]["title"] == "New Thread"

    def test_unknown_tool_is_404(self, client):
        response = client.post("/api/tools/nope/calls", json={"input": {}})
        assert response.status_code == 404

    def test_invalid_input_is_400(self, client):
        response = client.post("/api/tools/create_thread/calls", json={"input": {"title": 7}})
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["errors"][0]["loc"] == ["title"]
        assert client.get("/api/threads").json() == []

    def test_stop_unknown_call_is_404(self, client):
        response = client.post("/api/tool-calls/call_missing/stop")
        assert response.status_code == 404

    def test_entity_failure_is_409(self, client):
        store = client.app.state.workspace.store
        store.observe_new(Thread, lambda entity, _cx: store.release(entity))

        response = client.post("/api/tools/create_thread/calls", json={"input": {"title": "Gone"}})

        assert response.status_code == 409
        assert "released" in response.json()["detail"]
        assert client.get("/api/threads").json() == []

    def test_closed_store_is_503(self, client):
        workspace = client.app.state.workspace
        client.portal.call(workspace.store.close)

        response = client.post("/api/tools/create_thread/calls", json={"input": {"title": "Late"}})

        assert response.status_code == 503
        assert "Executor unavailable" in response.json()["detail"]


class TestStop:
    def test_stop_in_flight_call(self, client, blocking):
        """Stopping a running call succeeds and the call itself reports 499."""
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(
                client.post, "/api/tools/wait/calls", json={"toolCallId": "call_wait"}
            )
            try:
                assert blocking.started.wait(timeout=5)
            finally:
                stopped = client.post("/api/tool-calls/call_wait/stop")
            response = pending.result(timeout=5)

        assert stopped.status_code == 200
        assert stopped.json() == {"success": True}
        assert response.status_code == 499
        assert "cancelled" in response.json()["detail"]
        assert client.post("/api/tool-calls/call_wait/stop").status_code == 404

    def test_duplicate_in_flight_id_is_409(self, client, blocking):
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(
                client.post, "/api/tools/wait/calls", json={"toolCallId": "call_busy"}
            )
            try:
                assert blocking.started.wait(timeout=5)
                duplicate = client.post("/api/tools/wait/calls", json={"toolCallId": "call_busy"})
            finally:
                stopped = client.post("/api/tool-calls/call_busy/stop")
            first = pending.result(timeout=5)

        assert duplicate.status_code == 409
        assert "already running" in duplicate.json()["detail"]
        assert stopped.status_code == 200
        assert first.status_code == 499


class TestThreads:
    def test_unknown_thread_is_404(self, client):
        assert client.get("/api/threads/not-a-thread").status_code == 404

    def test_threads_listed_in_creation_order(self, client):
        ids = [
            client.post("/api/tools/create_thread/calls", json={"input": {"title": t}}).json()["output"]
            for t in ("first", "second", "third")
        ]
        threads = client.get("/api/threads").json()
        assert [t["id"] for t in threads] == ids
        assert [t["title"] for t in threads] == ["first", "second", "third"]

    def test_system_prompt_includes_title(self, client, tmp_path):
        thread_id = client.post(
            "/api/tools/create_thread/calls", json={"input": {"title": "Prompted"}}
        ).json()["output"]

        prompt = client.get(f"/api/threads/{thread_id}/system-prompt").json()["prompt"]
        assert 'thread "Prompted"' in prompt
        assert str(tmp_path.resolve()) in prompt


async def _collect(stream) -> list[dict[str, str]]:
    return [message async for message in stream]


class TestEventStream:
    @pytest.mark.asyncio
    async def test_replays_events_after_last_event_id(self, bus):
        for n in range(3):
            bus.publish("thread_created", {"n": n})
        queue = bus.subscribe()
        bus.shutdown()

        messages = await _collect(sse_events(bus, queue, last_event_id=1, heartbeat=5))

        assert messages[0]["event"] == "connected"
        assert '"lastEventId": 3' in messages[0]["data"]
        assert [m["id"] for m in messages[1:]] == ["2", "3"]
        assert [m["data"] for m in messages[1:]] == ['{"n": 1}', '{"n": 2}']

    @pytest.mark.asyncio
    async def test_replayed_events_are_not_sent_twice(self, bus):
        """Events queued between subscribing and replaying go out once."""
        bus.publish("tool_call_update", {"n": 0})
        queue = bus.subscribe()
        bus.publish("tool_call_update", {"n": 1})
        bus.publish("tool_call_update", {"n": 2})
        bus.publish("thread_created", {"n": 3})
        bus.shutdown()

        messages = await _collect(sse_events(bus, queue, last_event_id=1, heartbeat=5))

        assert [m["id"] for m in messages[1:]] == ["2", "3", "4"]

    @pytest.mark.asyncio
    async def test_without_last_event_id_only_live_events(self, bus):
        bus.publish("thread_created", {"n": 0})
        queue = bus.subscribe()
        bus.publish("thread_created", {"n": 1})
        bus.shutdown()

        messages = await _collect(sse_events(bus, queue, last_event_id=None, heartbeat=5))

        assert [m["id"] for m in messages[1:]] == ["2"]

    @pytest.mark.asyncio
    async def test_heartbeat_when_idle(self, bus):
        queue = bus.subscribe()
        stream = sse_events(bus, queue, last_event_id=None, heartbeat=0.01)

        assert (await anext(stream))["event"] == "connected"
        assert await anext(stream) == {"comment": "heartbeat"}

        await stream.aclose()
        bus.publish("thread_created", {})
        assert queue.empty()
