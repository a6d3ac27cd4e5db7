"""Registry of context (MCP) servers available to threads."""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextServer:
    name: str
    command: str
    args: tuple[str, ...] = ()
    enabled: bool = True


@dataclass
class ContextServerRegistry:
    """Named context servers, shared read-mostly by every thread."""

    _servers: dict[str, ContextServer] = field(default_factory=dict)

    def register(self, server: ContextServer) -> None:
        if server.name in self._servers:
            logger.info(f"Replacing context server {server.name!r}")
        self._servers[server.name] = server

    def unregister(self, name: str) -> bool:
        return self._servers.pop(name, None) is not None

    def get(self, name: str) -> ContextServer | None:
        return self._servers.get(name)

    def servers(self) -> list[ContextServer]:
        return sorted(self._servers.values(), key=lambda s: s.name)

    def enabled_servers(self) -> list[ContextServer]:
        return [s for s in self.servers() if s.enabled]
