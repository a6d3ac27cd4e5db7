"""The contract every agent tool implements."""

from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from agentthreads.entities import EntityStore
from agentthreads.errors import ToolInputError
from agentthreads.events import ToolCallEventStream

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT")


class ToolKind(StrEnum):
    """Effect category of a tool, as shown to clients."""

    READ = "read"
    EDIT = "edit"
    DELETE = "delete"
    MOVE = "move"
    SEARCH = "search"
    EXECUTE = "execute"
    THINK = "think"
    FETCH = "fetch"
    SWITCH_MODE = "switch_mode"
    OTHER = "other"


class AgentTool(ABC, Generic[InputT, OutputT]):
    """A named, dispatchable agent capability.

    Subclasses set ``name``, ``kind``, ``description`` and ``input_model``
    and implement ``initial_title`` and ``run``. Instances are shared
    across calls and must not keep per-call state.
    """

    name: ClassVar[str]
    kind: ClassVar[ToolKind]
    description: ClassVar[str] = ""
    input_model: ClassVar[type[BaseModel]]

    def decode_input(self, raw: Any) -> InputT | ToolInputError:
        """Validate raw input. Returns the error instead of raising it."""
        try:
            return self.input_model.model_validate(raw)  # type: ignore[return-value]
        except ValidationError as e:
            return ToolInputError(
                self.name,
                raw,
                e.errors(include_url=False, include_context=False, include_input=False),
            )

    @classmethod
    def input_schema(cls) -> dict[str, Any]:
        return cls.input_model.model_json_schema()

    @abstractmethod
    def initial_title(self, input: InputT | ToolInputError) -> str:
        """Label shown before and while the tool runs. Must never raise."""

    @abstractmethod
    async def run(
        self, input: InputT, event_stream: ToolCallEventStream, cx: EntityStore
    ) -> OutputT:
        """Execute the tool against a successfully decoded input."""
