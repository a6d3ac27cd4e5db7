"""CreateThread tool for starting new threads in the current project."""

from pydantic import BaseModel, ConfigDict, Field

from agentthreads.agents.tools.base import AgentTool, ToolKind
from agentthreads.context_servers import ContextServerRegistry
from agentthreads.entities import AsyncEntityContext, Entity, EntityStore
from agentthreads.errors import ToolInputError
from agentthreads.events import ToolCallEventStream
from agentthreads.project import Project, ProjectContext
from agentthreads.templates import Templates
from agentthreads.thread import Thread


class CreateThreadToolInput(BaseModel):
    """Creates a new agent thread with the current project context."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(
        None,
        description=(
            "Optional title for the new thread.\n\n"
            'To create a thread titled "Code Review", provide a title of "Code Review"'
        ),
    )


class CreateThreadTool(AgentTool[CreateThreadToolInput, str]):
    """Create a thread wired to the project's shared dependencies."""

    name = "create_thread"
    kind = ToolKind.OTHER
    description = (
        "Create a new agent thread with the current project context. Use this to organize "
        "work or set up a separate thread for a sub-task. Returns the new thread's ID."
    )
    input_model = CreateThreadToolInput

    def __init__(
        self,
        project: Entity[Project],
        project_context: Entity[ProjectContext],
        context_server_registry: Entity[ContextServerRegistry],
        templates: Templates,
    ):
        self.project = project
        self.project_context = project_context
        self.context_server_registry = context_server_registry
        self.templates = templates

    def initial_title(self, input: CreateThreadToolInput | ToolInputError) -> str:
        if isinstance(input, CreateThreadToolInput) and input.title is not None:
            return f"Create thread: {input.title}"
        return "Create thread"

    async def run(
        self,
        input: CreateThreadToolInput,
        event_stream: ToolCallEventStream,
        cx: EntityStore,
    ) -> str:
        async def create(async_cx: AsyncEntityContext) -> str:
            thread = async_cx.new(
                lambda _cx: Thread(
                    project=self.project,
                    project_context=self.project_context,
                    context_server_registry=self.context_server_registry,
                    templates=self.templates,
                    model=None,  # resolved to the default at first use
                )
            )

            if input.title is not None:
                title = input.title
                await async_cx.update(thread, lambda t, tcx: t.set_title(title, tcx))

            return str(thread.entity_id)

        return await cx.spawn(create)
