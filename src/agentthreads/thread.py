"""Thread entity: a unit of agent conversation scoped to a project."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from agentthreads.context_servers import ContextServerRegistry
from agentthreads.entities import Entity, EntityContext, EntityStore
from agentthreads.project import Project, ProjectContext
from agentthreads.templates import Templates

DEFAULT_TITLE = "New Thread"


@dataclass(frozen=True)
class ThreadTitleUpdated:
    """Emitted when a thread's title changes."""

    title: str


@dataclass
class Thread:
    """A conversation thread.

    Holds shared handles to its project dependencies; never mutates them.
    ``model`` of None means the system default is resolved at first use.
    """

    project: Entity[Project]
    project_context: Entity[ProjectContext]
    context_server_registry: Entity[ContextServerRegistry]
    templates: Templates
    model: str | None = None
    title: str = DEFAULT_TITLE
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def set_title(self, title: str, cx: EntityContext) -> None:
        if title == self.title:
            return
        self.title = title
        cx.emit(ThreadTitleUpdated(title))

    def resolved_model(self, default: str) -> str:
        return self.model or default

    def system_prompt(self, store: EntityStore) -> str:
        context = store.get(self.project_context)
        worktrees = "\n".join(
            f"- {w.root_name} ({w.abs_path})" for w in context.worktrees
        ) or "- (none)"
        rules = "\n".join(
            f"Rules from {w.rules_file} in {w.root_name}:\n{w.rules}"
            for w in context.worktrees
            if w.rules
        )
        return self.templates.render(
            "system_prompt",
            title=self.title,
            worktrees=worktrees,
            os=context.os,
            arch=context.arch,
            shell=context.shell,
            rules=rules,
        )

    def to_dict(self, store: EntityStore, entity_id: str, default_model: str) -> dict[str, Any]:
        project = store.get(self.project)
        registry = store.get(self.context_server_registry)
        return {
            "id": entity_id,
            "title": self.title,
            "model": self.model,
            "resolvedModel": self.resolved_model(default_model),
            "workDir": str(project.root),
            "contextServers": [s.name for s in registry.enabled_servers()],
            "createdAt": self.created_at.isoformat(),
        }
