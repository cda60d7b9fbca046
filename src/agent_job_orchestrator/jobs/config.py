from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum


class Terminal(str, Enum):
    END = "end"


END = Terminal.END

# Legacy fallback key inside ``Step.conditions``. ``Step.default`` takes precedence.
DEFAULT_KEY = "__DEFAULT__"

StepTarget = Terminal | int


@dataclass(frozen=True, slots=True)
class Step:
    """One step of a job.

    ``conditions`` maps a literal agent result to a target: :data:`END` or the
    index of another step. A step without conditions (and without a default)
    passes its result on to the next step.

    Targets are checked when the step runs, not here. A job with a bad target
    fails at that point with a job error event.
    """

    agent: str
    objective: str | None = None
    conditions: Mapping[str, object] | None = None
    default: object = None

    @property
    def routes(self) -> bool:
        return self.conditions is not None or self.default is not None


@dataclass(frozen=True, slots=True)
class JobConfig:
    """A named, sequential multi-step job. ``steps`` may be empty."""

    name: str
    description: str | None = None
    steps: Sequence[Step] = ()

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Job name is required")
