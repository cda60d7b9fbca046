"""Name -> (handle, config) directory for running workers.

One :class:`Registry` instance is one namespace. The orchestrator keeps a
separate namespace for servings, agents and jobs, so an agent and a serving
may share a name.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Generic, TypeVar

from agent_job_orchestrator.core.errors import AlreadyRegistered

logger = logging.getLogger(__name__)

H = TypeVar("H")
C = TypeVar("C")


@dataclass(frozen=True, slots=True)
class Registration(Generic[H, C]):
    handle: H
    config: C


class Registry(Generic[H, C]):
    def __init__(self, namespace: str) -> None:
        self.namespace = namespace
        self._entries: dict[str, Registration[H, C]] = {}
        self._lock = threading.Lock()

    def register(self, name: str, handle: H, config: C) -> Registration[H, C]:
        """Associate ``name`` with a worker.

        Raises:
            AlreadyRegistered: If the name is taken. The exception carries the
                existing registration.
        """
        with self._lock:
            existing = self._entries.get(name)
            if existing is not None:
                raise AlreadyRegistered(name=name, existing=existing)
            entry = Registration(handle=handle, config=config)
            self._entries[name] = entry
        logger.debug("Registered %s %r", self.namespace, name)
        return entry

    def lookup(self, name: str) -> Registration[H, C] | None:
        """Return the registration for ``name``, or None. Never raises."""
        with self._lock:
            return self._entries.get(name)

    def whereis(self, name: str) -> H | None:
        entry = self.lookup(name)
        return entry.handle if entry is not None else None

    def unregister(self, name: str, handle: H | None = None) -> bool:
        """Remove ``name``.

        When ``handle`` is given the entry is only removed if it still points
        at that handle, so a dead worker cannot unregister its replacement.
        """
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return False
            if handle is not None and entry.handle is not handle:
                return False
            del self._entries[name]
        logger.debug("Unregistered %s %r", self.namespace, name)
        return True

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
