"""Dynamic supervisor for named workers.

The supervisor starts workers from a :class:`ChildSpec`, registers them in the
child spec's registry and keeps the spec so a worker that dies on its own can be
replaced by a fresh instance under the same name (``restart_child``).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from agent_job_orchestrator.core.errors import (
    AlreadyRegistered,
    ErrorReason,
    ErrorResult,
)
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.worker import Worker

logger = logging.getLogger(__name__)


class RestartPolicy(str, Enum):
    PERMANENT = "permanent"  # always replaced
    TRANSIENT = "transient"  # replaced after an abnormal exit only
    TEMPORARY = "temporary"  # never replaced


class ExitReason(str, Enum):
    NORMAL = "normal"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ChildSpec:
    name: str
    config: Any
    factory: Callable[[], Worker]
    registry: Registry[Any, Any]
    restart: RestartPolicy = RestartPolicy.TEMPORARY


class Supervisor:
    def __init__(self) -> None:
        self._specs: dict[tuple[str, str], ChildSpec] = {}
        self._lock = threading.RLock()

    def start_child(self, spec: ChildSpec) -> Worker | ErrorResult:
        """Start and register a worker.

        A live worker already registered under the same name is returned as-is
        with a warning.
        """
        registry = spec.registry
        with self._lock:
            existing = registry.lookup(spec.name)
            if existing is not None:
                if existing.handle.is_alive:
                    logger.warning(
                        "%s %s already started",
                        registry.namespace.capitalize(),
                        spec.name,
                        extra={"worker": spec.name},
                    )
                    return existing.handle
                registry.unregister(spec.name, existing.handle)

            try:
                worker = spec.factory()
                worker.start()
            except Exception as e:
                logger.exception(
                    "Failed to start %s %s", registry.namespace, spec.name,
                    extra={"worker": spec.name},
                )
                return ErrorResult(ErrorReason.START_FAILED, str(e))

            try:
                registry.register(spec.name, worker, spec.config)
            except AlreadyRegistered as e:
                worker.stop()
                return e.existing.handle  # type: ignore[attr-defined]

            self._specs[(registry.namespace, spec.name)] = spec

        logger.info("Started %s %s", registry.namespace, spec.name, extra={"worker": spec.name})
        return worker

    def terminate_child(self, registry: Registry[Any, Any], name: str) -> bool:
        """Stop a worker for good. Returns False if nothing was registered."""
        with self._lock:
            self._specs.pop((registry.namespace, name), None)
            entry = registry.lookup(name)
            if entry is None:
                return False
            registry.unregister(name, entry.handle)
        entry.handle.stop()
        logger.info("Terminated %s %s", registry.namespace, name, extra={"worker": name})
        return True

    def restart_child(self, registry: Registry[Any, Any], name: str) -> Worker | ErrorResult:
        """Replace the worker registered under ``name`` with a fresh instance."""
        with self._lock:
            spec = self._specs.get((registry.namespace, name))
            if spec is None:
                raise KeyError(name)
            entry = registry.lookup(name)
            if entry is not None:
                registry.unregister(name, entry.handle)
                entry.handle.stop()
            return self.start_child(spec)

    def child_exited(
        self, registry: Registry[Any, Any], worker: Worker, reason: ExitReason
    ) -> Worker | None:
        """Handle a worker that ended on its own and apply its restart policy.

        Returns the replacement worker, if one was started.
        """
        with self._lock:
            registry.unregister(worker.name, worker)
            key = (registry.namespace, worker.name)
            spec = self._specs.get(key)
            if spec is None:
                return None

            restart = spec.restart == RestartPolicy.PERMANENT or (
                spec.restart == RestartPolicy.TRANSIENT and reason == ExitReason.ERROR
            )
            if not restart:
                del self._specs[key]
                logger.info(
                    "%s %s exited (%s), not restarting",
                    registry.namespace.capitalize(), worker.name, reason.value,
                    extra={"worker": worker.name},
                )
                return None

            logger.info(
                "Restarting %s %s after %s exit",
                registry.namespace, worker.name, reason.value,
                extra={"worker": worker.name},
            )
            replacement = self.start_child(spec)
        if isinstance(replacement, ErrorResult):
            logger.error(
                "Restart of %s %s failed: %s", registry.namespace, worker.name, replacement
            )
            return None
        return replacement

    def shutdown(self) -> None:
        with self._lock:
            keys = list(self._specs)
            registries = {spec.registry.namespace: spec.registry for spec in self._specs.values()}
        for namespace, name in keys:
            self.terminate_child(registries[namespace], name)
