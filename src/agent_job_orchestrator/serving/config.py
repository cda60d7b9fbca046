from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from agent_job_orchestrator.agents.prefixes import Prefixes

if TYPE_CHECKING:
    from agent_job_orchestrator.serving.backends import ServingBackend


@dataclass(frozen=True, slots=True)
class ServingConfig:
    """Configuration of a serving.

    Attributes:
        name: Unique serving name.
        serving: Backend that turns a finalized prompt into text.
        prefixes: Section headings for prompts sent to this serving. When None
            the orchestrator defaults are used.
        finalize: Applied to the fully built prompt before it is sent, e.g. to
            wrap it in model-specific control tokens.
        args: Extra backend arguments, kept for introspection.
    """

    name: str
    serving: ServingBackend
    prefixes: Prefixes | None = None
    finalize: Callable[[str], str] | None = None
    args: dict[str, Any] = field(default_factory=dict)


def template_finalizer(template: str) -> Callable[[str], str]:
    """Build a finalize hook from a ``{prompt}`` template."""
    if "{prompt}" not in template:
        raise ValueError("Finalize template must contain '{prompt}'")

    def finalize(prompt: str) -> str:
        return template.replace("{prompt}", prompt)

    return finalize
