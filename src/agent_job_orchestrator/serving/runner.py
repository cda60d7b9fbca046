"""Serving workers and the serving API.

A serving owns one backend and is shared by any number of agents. Calls go
straight to the backend from the calling thread, so the backend decides how
concurrent calls are handled (queued and batched, or one at a time).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Literal

from agent_job_orchestrator.agents.message import Message, build_prompt
from agent_job_orchestrator.agents.prefixes import Prefixes
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult, WorkerNotAlive
from agent_job_orchestrator.core.logging import log_context
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.supervisor import ChildSpec, Supervisor
from agent_job_orchestrator.core.worker import Worker
from agent_job_orchestrator.serving.config import ServingConfig

logger = logging.getLogger(__name__)


class ServingRunner(Worker):
    kind = "serving"

    def __init__(self, config: ServingConfig) -> None:
        super().__init__(config.name)
        self.config = config

    def init(self) -> None:
        self.config.serving.start(self.name)

    def terminate(self) -> None:
        self.config.serving.stop()

    def run(self, message: Message) -> str:
        if not self.is_alive:
            raise WorkerNotAlive(f"Serving {self.name!r} is not alive")
        with log_context(serving=self.name):
            logger.debug("Running message from agent %s", message.agent_name)
            return self.config.serving.run(message)

    def finalize(self, prompt: str) -> str:
        if self.config.finalize is None:
            return prompt
        return self.config.finalize(prompt)


class Servings:
    def __init__(
        self,
        supervisor: Supervisor,
        registry: Registry[ServingRunner, ServingConfig],
        prefixes: Prefixes,
    ) -> None:
        self._supervisor = supervisor
        self.registry = registry
        self.prefixes = prefixes

    def start(self, config: ServingConfig) -> ServingRunner | ErrorResult:
        """Start a serving. Servings without prefixes get the orchestrator defaults."""
        if config.prefixes is None:
            config = replace(config, prefixes=self.prefixes)
        spec = ChildSpec(
            name=config.name,
            config=config,
            factory=lambda: ServingRunner(config),
            registry=self.registry,
        )
        return self._supervisor.start_child(spec)  # type: ignore[return-value]

    def stop(self, name: str) -> Literal[True] | ErrorResult:
        if not self._supervisor.terminate_child(self.registry, name):
            return ErrorResult(ErrorReason.SERVING_NOT_FOUND, name)
        return True

    def get_config(self, name: str | ServingRunner) -> ServingConfig | ErrorResult:
        if isinstance(name, ServingRunner):
            if not name.is_alive:
                return ErrorResult(ErrorReason.SERVING_NOT_FOUND, name.name)
            return name.config
        entry = self.registry.lookup(name)
        if entry is None:
            return ErrorResult(ErrorReason.SERVING_NOT_FOUND, name)
        return entry.config

    def whereis(self, name: str) -> ServingRunner | None:
        return self.registry.whereis(name)

    def run(self, message: Message) -> str | ErrorResult:
        """Run an already built message on ``message.serving_name``."""
        name = message.serving_name
        runner = self.registry.whereis(name) if name else None
        if runner is None:
            return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, name or "")
        try:
            return runner.run(message)
        except WorkerNotAlive:
            return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, runner.name)

    def finalize(self, name: str, prompt: str) -> str | ErrorResult:
        runner = self.registry.whereis(name)
        if runner is None:
            return ErrorResult(ErrorReason.SERVING_NOT_FOUND, name)
        return runner.finalize(prompt)

    def message(self, message: Message) -> Message | ErrorResult:
        """Send a message straight to a serving, without an agent.

        The prompt holds the job and step sections plus the input.
        """
        config = self.get_config(message.serving_name or "")
        if isinstance(config, ErrorResult):
            return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, message.serving_name or "")

        prompt = build_prompt(None, message, config.prefixes or self.prefixes)
        finalized = self.finalize(config.name, prompt)
        if isinstance(finalized, ErrorResult):
            return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, config.name)

        message = message.evolve(prompt=finalized, serving_name=config.name)
        result = self.run(message)
        if isinstance(result, ErrorResult):
            return result
        return message.evolve(result=result)
