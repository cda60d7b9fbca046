"""Main orchestrator implementation."""

from __future__ import annotations

import logging
from types import TracebackType

from agent_job_orchestrator.agents.config import AgentConfig
from agent_job_orchestrator.agents.message import Message
from agent_job_orchestrator.agents.prefixes import Prefixes
from agent_job_orchestrator.agents.worker import Agents, AgentWorker
from agent_job_orchestrator.core.config import OrchestratorConfig
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.supervisor import RestartPolicy, Supervisor
from agent_job_orchestrator.jobs.config import JobConfig
from agent_job_orchestrator.jobs.engine import JobEngine
from agent_job_orchestrator.jobs.manager import Jobs
from agent_job_orchestrator.serving.backends import create_backend
from agent_job_orchestrator.serving.config import ServingConfig, template_finalizer
from agent_job_orchestrator.serving.runner import ServingRunner, Servings

logger = logging.getLogger(__name__)


class Orchestrator:
    """Supervision root for servings, agents and jobs.

    Owns the supervisor and one registry per kind of worker, and wires them
    together explicitly: nothing is looked up through module globals.

    Example:
        orchestrator = Orchestrator()
        orchestrator.servings.start(ServingConfig(name="llm", serving=backend))
        orchestrator.agents.start(AgentConfig(name="writer", serving="llm", prompt="..."))
        orchestrator.jobs.start(JobConfig(name="draft", steps=[Step(agent="writer", ...)]))
        orchestrator.jobs.run("draft", "input", caller=events.put)
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        *,
        prefixes: Prefixes | None = None,
        setup_logging: bool = True,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config: Configuration object. If None, loads from environment.
            prefixes: Prompt prefixes for servings that do not set their own.
            setup_logging: Configure structured logging from ``config``.
        """
        self.config = config or OrchestratorConfig()
        if setup_logging:
            self.config.setup_logging()

        logger.info("Initializing agent job orchestrator")

        self.prefixes = prefixes or Prefixes.default()
        self.supervisor = Supervisor()

        self.servings = Servings(
            self.supervisor,
            Registry[ServingRunner, ServingConfig]("serving"),
            self.prefixes,
        )
        self.agents = Agents(
            self.supervisor,
            Registry[AgentWorker, AgentConfig]("agent"),
            self.servings,
        )
        self.jobs = Jobs(
            self.supervisor,
            Registry[JobEngine, JobConfig]("job"),
            self.send,
            restart=RestartPolicy(self.config.runtime.job_restart),
        )

    def send(self, message: Message) -> Message | ErrorResult:
        """Validate a message and deliver it to its agent, or straight to its serving.

        Validation failures are returned before anything is dispatched.
        """
        if message.agent_name is None and message.serving_name is None:
            return ErrorResult(ErrorReason.NO_AGENT_OR_SERVING_NAME)
        if not message.input:
            return ErrorResult(ErrorReason.INPUT_REQUIRED)
        if message.agent_name is not None:
            return self.agents.message(message)
        return self.servings.message(message)

    def start_serving_from_settings(self, name: str) -> ServingRunner | ErrorResult:
        """Start a serving whose backend is described by ``config.llm``."""
        try:
            backend = create_backend(self.config.llm)
        except (ValueError, ImportError) as e:
            logger.error("Cannot create backend for serving %s: %s", name, e)
            return ErrorResult(ErrorReason.START_FAILED, str(e))

        template = self.config.runtime.finalize_template
        return self.servings.start(
            ServingConfig(
                name=name,
                serving=backend,
                finalize=template_finalizer(template) if template else None,
                args={"provider": self.config.llm.provider},
            )
        )

    def shutdown(self) -> None:
        logger.info("Shutting down orchestrator")
        self.supervisor.shutdown()

    def __enter__(self) -> Orchestrator:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
