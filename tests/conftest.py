"""
Pytest configuration and fixtures for agentthreads tests.

Key testing philosophy:
- Mock external dependencies (Claude Agent SDK transport, HTTP clients)
- Test our own logic (entity store, tool contract, dispatch, event stream)
"""

from dataclasses import dataclass

import pytest

from agentthreads.agents.dispatcher import ToolDispatcher
from agentthreads.agents.tools import CreateThreadTool
from agentthreads.config import Settings
from agentthreads.context_servers import ContextServer, ContextServerRegistry
from agentthreads.entities import Entity, EntityStore
from agentthreads.events import EventBus, ToolCallEventStream
from agentthreads.project import Project, ProjectContext
from agentthreads.templates import Templates

TOOL_CALL_ID = "call_test123"


@dataclass
class ThreadDeps:
    """The four shared handles a CreateThreadTool is built from."""
    project: Entity[Project]
    project_context: Entity[ProjectContext]
    context_server_registry: Entity[ContextServerRegistry]
    templates: Templates


@pytest.fixture
def store():
    return EntityStore()


@pytest.fixture
def bus():
    return EventBus(buffer_size=100)


@pytest.fixture
def deps(store, tmp_path):
    """Project dependencies registered in the store, rooted at a temp dir."""
    (tmp_path / "AGENTS.md").write_text("Always run the tests.")
    project_value = Project.open(tmp_path)
    registry = ContextServerRegistry()
    registry.register(ContextServer(name="github", command="gh-mcp"))
    return ThreadDeps(
        project=store.new(lambda _cx: project_value),
        project_context=store.new(lambda _cx: ProjectContext.from_project(project_value)),
        context_server_registry=store.new(lambda _cx: registry),
        templates=Templates(),
    )


@pytest.fixture
def tool(deps):
    return CreateThreadTool(
        deps.project,
        deps.project_context,
        deps.context_server_registry,
        deps.templates,
    )


@pytest.fixture
def stream(bus):
    return ToolCallEventStream(bus, TOOL_CALL_ID, "create_thread", "other")


@pytest.fixture
def dispatcher(store, bus, tool):
    dispatcher = ToolDispatcher(store, bus)
    dispatcher.register(tool)
    return dispatcher


@pytest.fixture
def settings(tmp_path):
    return Settings(work_dir=str(tmp_path), heartbeat_seconds=0.1)


@pytest.fixture
def tool_updates(bus):
    """Drain tool_call_update payloads published so far."""

    def _collect() -> list[dict]:
        return [e["data"] for e in bus.events_since(0) if e["type"] == "tool_call_update"]

    return _collect
