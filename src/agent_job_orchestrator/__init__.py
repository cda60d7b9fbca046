"""Agent Job Orchestrator.

Runs multi-step jobs over named agents, each of which renders a prompt, sends
it to a pluggable inference backend (a serving) and optionally post-processes
the result with a tool:

- servings wrap a batch model, an LLM API or any request/response worker
- agents build prompts from their template and the step's fields
- jobs sequence steps, branch on results and report progress as events
"""

__version__ = "0.1.0"

from agent_job_orchestrator.agents.config import AgentConfig, Prompt
from agent_job_orchestrator.agents.message import Message
from agent_job_orchestrator.agents.prefixes import Prefixes
from agent_job_orchestrator.core.config import OrchestratorConfig
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult
from agent_job_orchestrator.core.events import EventRecorder, EventType, JobEvent
from agent_job_orchestrator.core.orchestrator import Orchestrator
from agent_job_orchestrator.jobs.config import END, JobConfig, Step
from agent_job_orchestrator.serving.config import ServingConfig

__all__ = [
    "__version__",
    "END",
    "AgentConfig",
    "ErrorReason",
    "ErrorResult",
    "EventRecorder",
    "EventType",
    "JobConfig",
    "JobEvent",
    "Message",
    "Orchestrator",
    "OrchestratorConfig",
    "Prefixes",
    "Prompt",
    "ServingConfig",
    "Step",
]
