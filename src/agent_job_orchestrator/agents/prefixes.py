"""Headings and descriptions used when rendering prompt sections.

For every field that ends up in a prompt (job description, step objective,
agent prompt fields, tool instructions, input) a section is rendered as::

    ## {heading}
    {detail}: {value}

Fields without a value render nothing at all, heading included.

Defaults can be overridden for the whole orchestrator (``Orchestrator(...,
prefixes=...)``) or for a single serving (``ServingConfig.prefixes``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace

Pair = tuple[str, str]


@dataclass(frozen=True, slots=True)
class Prefixes:
    prompt: Pair
    identity: Pair
    context: Pair
    constraints: Pair
    examples: Pair
    reflection: Pair
    instructions: Pair
    objective: Pair
    description: Pair
    input: Pair

    @classmethod
    def default(cls) -> Prefixes:
        return cls(
            prompt=(
                "Agent",
                "You are a specialized agent with the following capabilities and expertise",
            ),
            identity=(
                "Identity",
                "You are a specialized agent with the following capabilities and expertise",
            ),
            context=("Context", "The purpose or goal behind your tasks are to"),
            constraints=(
                "Constraints",
                "You must operate with the following constraints or limitations",
            ),
            examples=(
                "Examples",
                "You should consider the following examples before returning results",
            ),
            reflection=(
                "Reflection",
                "You should reflect on the following factors before returning results",
            ),
            instructions=(
                "Tool Instructions",
                "You should provide structured output for function calling based on the "
                "following instructions",
            ),
            objective=("Step Objective", "The objective of this step is to"),
            description=(
                "Job Description",
                "This is part of multi-step job to achieve the following",
            ),
            input=(
                "Input",
                "The following is the actual input from the user, system or another agent",
            ),
        )

    def override(self, **pairs: Pair) -> Prefixes:
        """Return a copy with some pairs replaced.

        Raises:
            ValueError: If a key is not a prefix field.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(pairs) - known)
        if unknown:
            raise ValueError(f"Unknown prefix field(s): {', '.join(unknown)}")
        return replace(self, **pairs)

    def get(self, key: str) -> Pair:
        return getattr(self, key)
