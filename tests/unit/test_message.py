"""Unit tests for messages and prompt rendering."""

from __future__ import annotations

import pytest

from agent_job_orchestrator.agents.config import AgentConfig, Prompt
from agent_job_orchestrator.agents.message import Message, build_prompt, prompt_fields
from agent_job_orchestrator.agents.prefixes import Prefixes
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult
from agent_job_orchestrator.core.orchestrator import Orchestrator
from agent_job_orchestrator.serving.backends import WorkerBackend
from agent_job_orchestrator.serving.config import ServingConfig, template_finalizer

INPUT_SECTION = (
    "## Input\nThe following is the actual input from the user, system or another agent: test\n"
)


class EchoTool:
    def pre(self, input: str) -> str:
        return f"pre: {input}"

    def instructions(self) -> str:
        return "test tool instructions"

    def to_args(self, result: str) -> dict[str, str]:
        return {"t": "e"}

    def execute(self, args: dict[str, str]) -> dict[str, str]:
        return args

    def post(self, outcome: dict[str, str]) -> str:
        return ", ".join(f"{k}: {v}" for k, v in outcome.items())


def test_send_without_agent_or_serving(orchestrator: Orchestrator) -> None:
    result = orchestrator.send(Message(input="test"))

    assert isinstance(result, ErrorResult)
    assert result.reason == ErrorReason.NO_AGENT_OR_SERVING_NAME
    assert result.as_tuple() == ("error", "no_agent_or_serving_name")
    assert not result


def test_send_requires_input(orchestrator: Orchestrator) -> None:
    result = orchestrator.send(Message(serving_name="anything", input=""))

    assert isinstance(result, ErrorResult)
    assert result.reason == ErrorReason.INPUT_REQUIRED


def test_send_to_serving_without_agent(orchestrator: Orchestrator) -> None:
    orchestrator.servings.start(
        ServingConfig(
            name="text_generation",
            serving=WorkerBackend(lambda m: f"sent {m.input!r} to: "),
            finalize=template_finalizer("<s>[INST]{prompt}[/INST]"),
        )
    )

    reply = orchestrator.send(Message(serving_name="text_generation", input="test"))

    assert isinstance(reply, Message)
    assert reply.input == "test"
    assert reply.serving_name == "text_generation"
    assert reply.result == "sent 'test' to: "
    assert reply.prompt == f"<s>[INST]{INPUT_SECTION}[/INST]"


def test_send_to_missing_serving(orchestrator: Orchestrator) -> None:
    result = orchestrator.send(Message(serving_name="missing", input="test"))

    assert isinstance(result, ErrorResult)
    assert result.reason == ErrorReason.SERVING_NOT_RUNNING


def test_prompt_sections_are_ordered_and_skip_empty_fields() -> None:
    agent = AgentConfig(
        name="writer",
        serving="llm",
        prompt=Prompt(identity="a writer", constraints="", examples=[{"input": "A"}]),
    )
    message = Message(
        input="hello", job_description="write things", step_objective="draft a line"
    )

    keys = [key for key, _ in prompt_fields(agent, message)]

    assert keys == ["description", "objective", "identity", "examples", "input"]


def test_build_prompt_renders_sections() -> None:
    agent = AgentConfig(name="writer", serving="llm", prompt="Write well")
    message = Message(input="test", step_objective="draft")

    prompt = build_prompt(agent, message, Prefixes.default())

    assert prompt == (
        "## Step Objective\nThe objective of this step is to: draft\n"
        "\n\n"
        "## Agent\n"
        "You are a specialized agent with the following capabilities and expertise: Write well\n"
        "\n\n" + INPUT_SECTION
    )


def test_build_prompt_serializes_examples() -> None:
    agent = AgentConfig(
        name="writer", serving="llm", prompt=Prompt(examples=[{"input": "A", "output": "C"}])
    )

    prompt = build_prompt(agent, Message(input="x"), Prefixes.default())

    assert '[{"input": "A", "output": "C"}]' in prompt


def test_build_prompt_with_tool_applies_pre_and_instructions() -> None:
    agent = AgentConfig(name="tooling", serving="llm", tool=EchoTool())

    prompt = build_prompt(agent, Message(input="test"), Prefixes.default())

    assert "## Tool Instructions\n" in prompt
    assert "instructions: test tool instructions\n" in prompt
    assert prompt.endswith("another agent: pre: test\n")


def test_build_prompt_uses_custom_prefixes() -> None:
    prefixes = Prefixes.default().override(input=("User", "Text"))

    assert build_prompt(None, Message(input="hi"), prefixes) == "## User\nText: hi\n"


def test_agent_config_requires_name_and_serving() -> None:
    with pytest.raises(ValueError):
        AgentConfig(name="", serving="llm")
    with pytest.raises(ValueError):
        AgentConfig(name="writer", serving="")


def test_template_finalizer_requires_placeholder() -> None:
    with pytest.raises(ValueError):
        template_finalizer("<s>[INST]")

    assert template_finalizer("[{prompt}]")("x") == "[x]"


def test_tool_contract() -> None:
    tool = EchoTool()

    assert tool.pre("test") == "pre: test"
    assert tool.post(tool.execute(tool.to_args("result"))) == "t: e"


def test_error_reasons_match_returned_values() -> None:
    assert {reason.value for reason in ErrorReason} == {
        "agent_not_running",
        "agent_not_found",
        "serving_not_running",
        "serving_not_found",
        "job_not_found",
        "job_already_running",
        "input_required",
        "no_agent_or_serving_name",
        "start_failed",
    }
