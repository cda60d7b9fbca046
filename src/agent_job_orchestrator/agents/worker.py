"""Agent workers.

An agent renders its prompt around a step's input, dispatches it to its
serving and, when it has a tool, runs the serving's result through the tool.
Each agent handles one message at a time on its own mailbox thread.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal, overload

from agent_job_orchestrator.agents.config import AgentConfig
from agent_job_orchestrator.agents.message import Message, build_prompt
from agent_job_orchestrator.agents.tool import Tool
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult, WorkerNotAlive
from agent_job_orchestrator.core.events import EventType, JobEvent, emit
from agent_job_orchestrator.core.logging import log_context
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.supervisor import ChildSpec, Supervisor
from agent_job_orchestrator.core.worker import Worker
from agent_job_orchestrator.serving.runner import Servings

logger = logging.getLogger(__name__)


class AgentWorker(Worker):
    kind = "agent"

    def __init__(self, config: AgentConfig, servings: Servings) -> None:
        super().__init__(config.name)
        self.config = config
        self._servings = servings

    def message(self, message: Message) -> Message | ErrorResult:
        return self.call(self._handle, message)

    def _handle(self, message: Message) -> Message | ErrorResult:
        with log_context(agent=self.name, serving=self.config.serving):
            serving = self._servings.get_config(self.config.serving)
            if isinstance(serving, ErrorResult):
                logger.warning("Agent %s cannot reach serving %s", self.name, self.config.serving)
                return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, self.config.serving)

            prompt = build_prompt(self.config, message, serving.prefixes or self._servings.prefixes)
            finalized = self._servings.finalize(serving.name, prompt)
            if isinstance(finalized, ErrorResult):
                return ErrorResult(ErrorReason.SERVING_NOT_RUNNING, serving.name)

            message = message.evolve(prompt=finalized, serving_name=serving.name)
            result = self._servings.run(message)
            if isinstance(result, ErrorResult):
                return result

            message = message.evolve(result=result)
            if self.config.tool is None:
                return message
            return self._use_tool(message, self.config.tool)

    def _use_tool(self, message: Message, tool: Tool) -> Message:
        job, index, caller = message.job_name, message.step_index, message.caller

        emit(caller, JobEvent(EventType.TOOL_STARTED, job, index, message.result))
        raw = tool.execute(tool.to_args(message.result or ""))
        emit(caller, JobEvent(EventType.TOOL_RAW, job, index, raw))
        final = tool.post(raw)
        emit(caller, JobEvent(EventType.TOOL_RESULT, job, index, final))

        return message.evolve(result=final)


class Agents:
    def __init__(
        self,
        supervisor: Supervisor,
        registry: Registry[AgentWorker, AgentConfig],
        servings: Servings,
    ) -> None:
        self._supervisor = supervisor
        self.registry = registry
        self._servings = servings

    @overload
    def start(self, config: AgentConfig) -> AgentWorker | ErrorResult: ...

    @overload
    def start(self, config: Sequence[AgentConfig]) -> list[AgentWorker | ErrorResult]: ...

    def start(
        self, config: AgentConfig | Sequence[AgentConfig]
    ) -> AgentWorker | ErrorResult | list[AgentWorker | ErrorResult]:
        if not isinstance(config, AgentConfig):
            return [self._start_one(c) for c in config]
        return self._start_one(config)

    def _start_one(self, config: AgentConfig) -> AgentWorker | ErrorResult:
        spec = ChildSpec(
            name=config.name,
            config=config,
            factory=lambda: AgentWorker(config, self._servings),
            registry=self.registry,
        )
        return self._supervisor.start_child(spec)  # type: ignore[return-value]

    def stop(self, name: str) -> Literal[True] | ErrorResult:
        if not self._supervisor.terminate_child(self.registry, name):
            return ErrorResult(ErrorReason.AGENT_NOT_FOUND, name)
        return True

    def get_config(self, name: str | AgentWorker) -> AgentConfig | ErrorResult:
        if isinstance(name, AgentWorker):
            if not name.is_alive:
                return ErrorResult(ErrorReason.AGENT_NOT_FOUND, name.name)
            return name.config
        entry = self.registry.lookup(name)
        if entry is None:
            return ErrorResult(ErrorReason.AGENT_NOT_FOUND, name)
        return entry.config

    def whereis(self, name: str) -> AgentWorker | None:
        return self.registry.whereis(name)

    def message(self, message: Message) -> Message | ErrorResult:
        """Dispatch ``message`` to the agent named by ``message.agent_name``."""
        worker = self.registry.whereis(message.agent_name) if message.agent_name else None
        if worker is None:
            return ErrorResult(ErrorReason.AGENT_NOT_RUNNING, message.agent_name or "")
        try:
            return worker.message(message)
        except WorkerNotAlive:
            return ErrorResult(ErrorReason.AGENT_NOT_RUNNING, worker.name)
