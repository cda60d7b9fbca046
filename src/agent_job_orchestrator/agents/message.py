"""Per-call message passed between jobs, agents and servings, and the prompt builder."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace

from agent_job_orchestrator.agents.config import PROMPT_FIELDS, AgentConfig, Prompt
from agent_job_orchestrator.agents.prefixes import Prefixes
from agent_job_orchestrator.core.events import EventSink


@dataclass(frozen=True, slots=True)
class Message:
    """One invocation of an agent or serving.

    A job builds a fresh message for every step; ``prompt`` and ``result`` are
    filled in on the way through agent and serving and the message is dropped
    once its result reaches the job.
    """

    input: str | None = None
    prompt: str | None = None
    result: str | None = None
    agent_name: str | None = None
    serving_name: str | None = None
    job_name: str | None = None
    job_description: str | None = None
    step_index: int | None = None
    step_objective: str | None = None
    caller: EventSink | None = None

    def evolve(self, **changes: object) -> Message:
        return replace(self, **changes)


def _is_empty(value: object) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _format_value(value: object) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def render_section(pair: tuple[str, str], value: object) -> str:
    heading, detail = pair
    return f"## {heading}\n{detail}: {_format_value(value)}\n"


def prompt_fields(agent: AgentConfig | None, message: Message) -> list[tuple[str, object]]:
    """Ordered (prefix key, value) pairs for every non-empty prompt section.

    Order: job description, step objective, agent prompt, tool instructions,
    input. A tool's ``pre`` hook is applied to the input.
    """
    items: list[tuple[str, object]] = [
        ("description", message.job_description),
        ("objective", message.step_objective),
    ]
    input_value: object = message.input

    if agent is not None:
        if isinstance(agent.prompt, Prompt):
            items.extend((key, getattr(agent.prompt, key)) for key in PROMPT_FIELDS)
        elif isinstance(agent.prompt, str):
            items.append(("prompt", agent.prompt))

        if agent.tool is not None:
            items.append(("instructions", agent.tool.instructions()))
            input_value = agent.tool.pre(message.input or "")

    items.append(("input", input_value))
    return [(key, value) for key, value in items if not _is_empty(value)]


def build_prompt(agent: AgentConfig | None, message: Message, prefixes: Prefixes) -> str:
    return "\n\n".join(
        render_section(prefixes.get(key), value) for key, value in prompt_fields(agent, message)
    )
