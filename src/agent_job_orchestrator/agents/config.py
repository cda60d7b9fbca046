from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from agent_job_orchestrator.agents.tool import Tool

PROMPT_FIELDS: tuple[str, ...] = ("identity", "context", "constraints", "examples", "reflection")


@dataclass(frozen=True, slots=True)
class Prompt:
    """Structured agent prompt. Every field is optional; unset fields are not rendered."""

    identity: str | None = None
    context: str | None = None
    constraints: str | None = None
    examples: str | list[dict[str, Any]] | None = None
    reflection: str | None = None


@dataclass(frozen=True, slots=True)
class AgentConfig:
    """Static configuration of an agent worker.

    ``serving`` is the name of the serving the agent dispatches to.
    ``knowledge`` is reserved and currently unused.
    """

    name: str
    serving: str
    prompt: str | Prompt | None = None
    tool: Tool | None = None
    knowledge: Any = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Agent name is required")
        if not self.serving:
            raise ValueError(f"Agent {self.name!r} requires a serving name")
