"""
Tests for the Claude Agent SDK bridge.

The SDK is only used to wrap handlers; no Claude process is started.
"""

import pytest

from agentthreads.agents.sdk import (
    SERVER_NAME,
    allowed_tool_names,
    create_tool_server,
    to_sdk_tool,
)
from agentthreads.thread import Thread


class TestSdkTool:
    def test_wraps_name_description_and_schema(self, dispatcher, tool):
        sdk_tool = to_sdk_tool(tool, dispatcher)
        assert sdk_tool.name == "create_thread"
        assert sdk_tool.description == tool.description
        assert "title" in sdk_tool.input_schema["properties"]

    @pytest.mark.asyncio
    async def test_handler_returns_thread_id(self, dispatcher, tool, store):
        sdk_tool = to_sdk_tool(tool, dispatcher)

        result = await sdk_tool.handler({"title": "From Claude"})

        assert "is_error" not in result
        thread_id = result["content"][0]["text"]
        thread = store.lookup(thread_id, Thread)
        assert thread is not None
        assert store.get(thread).title == "From Claude"

    @pytest.mark.asyncio
    async def test_handler_reports_invalid_input(self, dispatcher, tool, store):
        sdk_tool = to_sdk_tool(tool, dispatcher)

        result = await sdk_tool.handler({"title": {"nested": True}})

        assert result["is_error"] is True
        assert result["content"][0]["text"].startswith("Error: Invalid input")
        assert store.entities(Thread) == []

    @pytest.mark.asyncio
    async def test_handler_reports_entity_failure(self, dispatcher, tool, store):
        store.observe_new(Thread, lambda entity, _cx: store.release(entity))
        sdk_tool = to_sdk_tool(tool, dispatcher)

        result = await sdk_tool.handler({"title": "Doomed"})

        assert result["is_error"] is True
        assert "released" in result["content"][0]["text"]


class TestToolServer:
    def test_server_config(self, dispatcher):
        server = create_tool_server(dispatcher)
        assert server["type"] == "sdk"
        assert server["name"] == SERVER_NAME

    def test_allowed_tool_names(self, dispatcher):
        assert allowed_tool_names(dispatcher) == ["mcp__agentthreads__create_thread"]
