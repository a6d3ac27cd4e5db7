"""Entity store: host-owned arena of long-lived stateful objects.

Entities are created through the store, addressed by opaque ids and
accessed through lightweight handles. Holding a handle grants no
ownership; the store decides an entity's lifetime, so every access can
fail once the entity has been released or the store has been closed.

Asynchronous work that touches entities is scheduled with ``spawn`` and
receives an ``AsyncEntityContext``. Its reads and updates yield to the
event loop before applying, so they observe any release that happened
while the work was suspended.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from agentthreads.errors import (
    EntityReleasedError,
    EntityTypeError,
    ExecutorUnavailableError,
    StoreClosedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class EntityId:
    """Stable, process-unique entity identifier."""

    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Entity(Generic[T]):
    """Handle to an entity owned by an ``EntityStore``."""

    entity_id: EntityId
    kind: type[T]


@dataclass(frozen=True)
class EntityEvent:
    """An event emitted by an entity, as seen by store subscribers."""

    entity_id: EntityId
    kind: type
    event: Any


class EntityContext:
    """Context handed to entity build and update callbacks."""

    def __init__(self, store: EntityStore, entity_id: EntityId, kind: type | None = None):
        self.store = store
        self.entity_id = entity_id
        self._kind = kind

    def emit(self, event: Any) -> None:
        """Broadcast an event from this entity to store subscribers."""
        kind = self._kind or type(self.store._entities.get(self.entity_id))
        self.store._emit(EntityEvent(self.entity_id, kind, event))


class EntityStore:
    """Owns entities, hands out handles and schedules entity-aware work."""

    def __init__(self) -> None:
        self._entities: dict[EntityId, Any] = {}
        self._new_observers: dict[type, list[Callable[[Entity[Any], EntityContext], None]]] = (
            defaultdict(list)
        )
        self._subscribers: list[Callable[[EntityEvent], None]] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError()

    def new(self, build: Callable[[EntityContext], T]) -> Entity[T]:
        """Construct a new entity synchronously and return its handle."""
        self._ensure_open()
        entity_id = EntityId(str(uuid.uuid4()))
        cx = EntityContext(self, entity_id)
        value = build(cx)
        self._entities[entity_id] = value
        entity: Entity[T] = Entity(entity_id, type(value))
        cx._kind = entity.kind
        logger.debug(f"Created {entity.kind.__name__} entity {entity_id}")

        for kind, callbacks in list(self._new_observers.items()):
            if isinstance(value, kind):
                for callback in list(callbacks):
                    callback(entity, cx)
        return entity

    def _lookup(self, entity: Entity[T]) -> T:
        self._ensure_open()
        try:
            value = self._entities[entity.entity_id]
        except KeyError:
            raise EntityReleasedError(str(entity.entity_id)) from None
        if not isinstance(value, entity.kind):
            raise EntityTypeError(str(entity.entity_id), entity.kind, type(value))
        return value

    def get(self, entity: Entity[T]) -> T:
        """Return the live value behind a handle."""
        return self._lookup(entity)

    def read(self, entity: Entity[T], fn: Callable[[T], R]) -> R:
        return fn(self._lookup(entity))

    def update(self, entity: Entity[T], fn: Callable[[T, EntityContext], R]) -> R:
        """Apply ``fn`` to the live entity and return its result."""
        value = self._lookup(entity)
        return fn(value, EntityContext(self, entity.entity_id, entity.kind))

    def release(self, entity: Entity[Any]) -> bool:
        """Drop an entity. Returns False if it was already gone."""
        removed = self._entities.pop(entity.entity_id, None) is not None
        if removed:
            logger.debug(f"Released entity {entity.entity_id}")
        return removed

    def contains(self, entity_id: EntityId | str) -> bool:
        if isinstance(entity_id, str):
            entity_id = EntityId(entity_id)
        return entity_id in self._entities

    def lookup(self, entity_id: EntityId | str, kind: type[T]) -> Entity[T] | None:
        """Resolve an id (e.g. from a request path) to a typed handle."""
        if isinstance(entity_id, str):
            entity_id = EntityId(entity_id)
        value = self._entities.get(entity_id)
        if value is None or not isinstance(value, kind):
            return None
        return Entity(entity_id, type(value))

    def entities(self, kind: type[T]) -> list[Entity[T]]:
        """Live handles of the given type, in creation order."""
        return [
            Entity(entity_id, type(value))
            for entity_id, value in self._entities.items()
            if isinstance(value, kind)
        ]

    def observe_new(
        self, kind: type[T], callback: Callable[[Entity[T], EntityContext], None]
    ) -> Callable[[], None]:
        """Call ``callback`` after every new entity of ``kind`` is inserted."""
        self._new_observers[kind].append(callback)

        def unsubscribe() -> None:
            if callback in self._new_observers[kind]:
                self._new_observers[kind].remove(callback)

        return unsubscribe

    def subscribe(self, callback: Callable[[EntityEvent], None]) -> Callable[[], None]:
        """Receive every event emitted by any entity."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _emit(self, event: EntityEvent) -> None:
        for callback in list(self._subscribers):
            callback(event)

    def spawn(self, work: Callable[[AsyncEntityContext], Awaitable[R]]) -> asyncio.Task[R]:
        """Schedule ``work`` on the running event loop.

        Cancelling the returned task abandons the work. Entities it has
        already created stay in the store.
        """
        if self._closed:
            raise ExecutorUnavailableError("entity store is closed")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise ExecutorUnavailableError("no running event loop") from None

        task = loop.create_task(work(AsyncEntityContext(self)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def close(self) -> None:
        """Cancel outstanding work and drop every entity."""
        self._closed = True
        current = asyncio.current_task()
        pending = [t for t in self._tasks if not t.done() and t is not current]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        count = len(self._entities)
        self._entities.clear()
        self._subscribers.clear()
        self._new_observers.clear()
        logger.info(f"Entity store closed ({count} entities dropped, {len(pending)} tasks cancelled)")


class AsyncEntityContext:
    """Entity access for work scheduled with ``EntityStore.spawn``."""

    def __init__(self, store: EntityStore):
        self.store = store

    def new(self, build: Callable[[EntityContext], T]) -> Entity[T]:
        return self.store.new(build)

    async def read(self, entity: Entity[T], fn: Callable[[T], R]) -> R:
        await asyncio.sleep(0)
        return self.store.read(entity, fn)

    async def update(self, entity: Entity[T], fn: Callable[[T, EntityContext], R]) -> R:
        await asyncio.sleep(0)
        return self.store.update(entity, fn)
