"""Test configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest

from agent_job_orchestrator.agents.config import AgentConfig, Prompt
from agent_job_orchestrator.agents.message import Message
from agent_job_orchestrator.core.config import LLMConfig, OrchestratorConfig, RuntimeConfig
from agent_job_orchestrator.core.events import EventRecorder
from agent_job_orchestrator.core.orchestrator import Orchestrator
from agent_job_orchestrator.serving.backends import WorkerBackend
from agent_job_orchestrator.serving.config import ServingConfig

SERVING = "text_generation"

# Letter-shift agents: the first moves one letter back, the second two letters
# forward and the verifier accepts "G" only. Anything else is echoed.
_LETTERS: dict[str, dict[str, str]] = {
    "first_agent": {"D": "C", "E": "D", "F": "E"},
    "second_agent": {"C": "E", "D": "F", "E": "G"},
    "verifier_agent": {"G": "TRUE"},
    "tool_agent": {},
}


def map_input(message: Message) -> str:
    """Stub model: maps an agent's input instead of reading the prompt."""
    agent = message.agent_name
    text = message.input or ""
    if agent == "tool_agent":
        return "FALSE"
    if agent in _LETTERS:
        return _LETTERS[agent].get(text, text)
    return f"sent {text!r} to: {message.serving_name}"


class NoopTool:
    def __init__(self) -> None:
        self.calls: list[Any] = []

    def pre(self, input: str) -> str:
        return input

    def instructions(self) -> str:
        return ""

    def to_args(self, result: str) -> list[Any]:
        self.calls.append(result)
        return []

    def execute(self, args: Any) -> dict[str, Any]:
        return {}

    def post(self, outcome: Any) -> str:
        return "TRUE"


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(
        provider="openai",
        openai_api_key="test-key",
        openai_model="gpt-4",
    )


@pytest.fixture
def orchestrator_config(llm_config: LLMConfig) -> OrchestratorConfig:
    """Provide a test orchestrator configuration."""
    return OrchestratorConfig(
        log_level="DEBUG",
        debug=True,
        llm=llm_config,
        runtime=RuntimeConfig(job_restart="permanent"),
    )


@pytest.fixture
def orchestrator(orchestrator_config: OrchestratorConfig) -> Iterator[Orchestrator]:
    # Logging stays as pytest configured it so caplog keeps working.
    orch = Orchestrator(orchestrator_config, setup_logging=False)
    yield orch
    orch.shutdown()


@pytest.fixture
def noop_tool() -> NoopTool:
    return NoopTool()


@pytest.fixture
def agent_configs(noop_tool: NoopTool) -> list[AgentConfig]:
    return [
        AgentConfig(
            name="first_agent",
            serving=SERVING,
            prompt="Return the capital letter one place before the letter provided as input.",
        ),
        AgentConfig(
            name="second_agent",
            serving=SERVING,
            prompt=Prompt(
                identity="You return the capital letter two places ahead of the input letter.",
                context="You are used as part of a unit test suite for a multi-agent workflow",
                constraints="Your output should only be a single capital letter, or 'ERROR'",
                examples=[{"input": "A", "output": "C"}, {"input": "F", "output": "H"}],
            ),
        ),
        AgentConfig(
            name="verifier_agent",
            serving=SERVING,
            prompt="Return 'TRUE' if input is 'G', otherwise return the input",
        ),
        AgentConfig(name="tool_agent", serving=SERVING, tool=noop_tool),
    ]


@pytest.fixture
def stub_serving(orchestrator: Orchestrator) -> ServingConfig:
    config = ServingConfig(name=SERVING, serving=WorkerBackend(map_input))
    runner = orchestrator.servings.start(config)
    assert runner
    return config


@pytest.fixture
def agents(
    orchestrator: Orchestrator, stub_serving: ServingConfig, agent_configs: list[AgentConfig]
) -> list[AgentConfig]:
    started = orchestrator.agents.start(agent_configs)
    assert all(started)
    return agent_configs


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
