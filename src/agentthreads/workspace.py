"""Wire a project, its shared dependencies and the tool dispatcher together."""

import logging
from dataclasses import dataclass

from agentthreads.agents.dispatcher import ToolDispatcher
from agentthreads.agents.tools import CreateThreadTool
from agentthreads.config import Settings
from agentthreads.context_servers import ContextServerRegistry
from agentthreads.entities import Entity, EntityStore
from agentthreads.events import EventBus
from agentthreads.project import Project, ProjectContext
from agentthreads.templates import Templates
from agentthreads.thread import Thread, ThreadTitleUpdated

logger = logging.getLogger(__name__)


@dataclass
class Workspace:
    settings: Settings
    store: EntityStore
    bus: EventBus
    dispatcher: ToolDispatcher
    project: Entity[Project]
    project_context: Entity[ProjectContext]
    context_server_registry: Entity[ContextServerRegistry]
    templates: Templates

    def threads(self) -> list[Entity[Thread]]:
        return self.store.entities(Thread)

    def thread_to_dict(self, thread: Entity[Thread]) -> dict:
        return self.store.get(thread).to_dict(
            self.store, str(thread.entity_id), self.settings.default_model
        )

    async def close(self) -> None:
        self.bus.shutdown()
        await self.store.close()


def build_workspace(settings: Settings) -> Workspace:
    """Create the entity store and register every tool.

    Raises:
        ValueError: If the configured working directory is invalid.
    """
    project_value = Project.open(settings.work_dir)
    store = EntityStore()
    bus = EventBus(buffer_size=settings.event_buffer_size)

    project = store.new(lambda _cx: project_value)
    project_context = store.new(lambda _cx: ProjectContext.from_project(project_value))
    context_server_registry = store.new(lambda _cx: ContextServerRegistry())
    templates = Templates()

    def on_thread_created(thread: Entity[Thread], _cx) -> None:
        bus.publish("thread_created", {"threadId": str(thread.entity_id)})

    def on_entity_event(event) -> None:
        if isinstance(event.event, ThreadTitleUpdated):
            bus.publish(
                "thread_title_updated",
                {"threadId": str(event.entity_id), "title": event.event.title},
            )

    store.observe_new(Thread, on_thread_created)
    store.subscribe(on_entity_event)

    dispatcher = ToolDispatcher(store, bus)
    dispatcher.register(
        CreateThreadTool(project, project_context, context_server_registry, templates)
    )
    logger.info(f"Workspace ready at {project_value.root}")

    return Workspace(
        settings=settings,
        store=store,
        bus=bus,
        dispatcher=dispatcher,
        project=project,
        project_context=project_context,
        context_server_registry=context_server_registry,
        templates=templates,
    )
