"""Job API: start, run and inspect job engines by name."""

from __future__ import annotations

from typing import Literal

from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult
from agent_job_orchestrator.core.events import EventSink
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.supervisor import (
    ChildSpec,
    ExitReason,
    RestartPolicy,
    Supervisor,
)
from agent_job_orchestrator.jobs.config import JobConfig
from agent_job_orchestrator.jobs.engine import Dispatch, JobEngine


class Jobs:
    def __init__(
        self,
        supervisor: Supervisor,
        registry: Registry[JobEngine, JobConfig],
        dispatch: Dispatch,
        restart: RestartPolicy = RestartPolicy.PERMANENT,
    ) -> None:
        self._supervisor = supervisor
        self.registry = registry
        self._dispatch = dispatch
        self.restart = restart

    def start(self, config: JobConfig) -> JobEngine | ErrorResult:
        """Start a job engine in ``init`` state. No step is executed."""
        spec = ChildSpec(
            name=config.name,
            config=config,
            factory=lambda: JobEngine(config, dispatch=self._dispatch, on_exit=self._exited),
            registry=self.registry,
            restart=self.restart,
        )
        return self._supervisor.start_child(spec)  # type: ignore[return-value]

    def _exited(self, engine: JobEngine, reason: ExitReason) -> None:
        self._supervisor.child_exited(self.registry, engine, reason)

    def run(
        self, name: str | JobEngine, input: str, caller: EventSink | None = None
    ) -> Literal[True] | ErrorResult:
        engine = self._resolve(name)
        if engine is None:
            return ErrorResult(ErrorReason.JOB_NOT_FOUND, _name_of(name))
        return engine.run(input, caller)

    def get_config(self, name: str | JobEngine) -> JobConfig | ErrorResult:
        engine = self._resolve(name)
        if engine is None:
            return ErrorResult(ErrorReason.JOB_NOT_FOUND, _name_of(name))
        return engine.config

    def stop(self, name: str) -> Literal[True] | ErrorResult:
        """Terminate a job engine without restarting it, mid-run or not."""
        if not self._supervisor.terminate_child(self.registry, name):
            return ErrorResult(ErrorReason.JOB_NOT_FOUND, name)
        return True

    def whereis(self, name: str) -> JobEngine | None:
        return self._resolve(name)

    def _resolve(self, name: str | JobEngine) -> JobEngine | None:
        engine = name if isinstance(name, JobEngine) else self.registry.whereis(name)
        if engine is None or not engine.is_alive:
            return None
        return engine


def _name_of(name: str | JobEngine) -> str:
    return name.name if isinstance(name, JobEngine) else name
