"""Error values and exceptions shared by every component.

Lookup, validation and guard failures are *returned* as :class:`ErrorResult`
values at the boundary where they happen. Exceptions are reserved for
programming errors and for fatal job engine conditions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorReason(str, Enum):
    AGENT_NOT_RUNNING = "agent_not_running"
    AGENT_NOT_FOUND = "agent_not_found"
    SERVING_NOT_RUNNING = "serving_not_running"
    SERVING_NOT_FOUND = "serving_not_found"
    JOB_NOT_FOUND = "job_not_found"
    JOB_ALREADY_RUNNING = "job_already_running"
    INPUT_REQUIRED = "input_required"
    NO_AGENT_OR_SERVING_NAME = "no_agent_or_serving_name"
    START_FAILED = "start_failed"


@dataclass(frozen=True, slots=True)
class ErrorResult:
    """A typed, recoverable failure.

    Instances are falsy so callers can write ``if not result: ...``.
    """

    reason: ErrorReason
    message: str = ""

    def __bool__(self) -> bool:
        return False

    def as_tuple(self) -> tuple[str, str]:
        return ("error", self.reason.value)

    def __str__(self) -> str:
        if self.message:
            return f"{self.reason.value}: {self.message}"
        return self.reason.value


class OrchestratorError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class AlreadyRegistered(OrchestratorError):
    """Raised by a registry when a live name is registered twice."""

    name: str
    existing: object

    def __str__(self) -> str:
        return f"Already registered: {self.name!r}"


class WorkerNotAlive(OrchestratorError):
    pass


class JobEngineError(OrchestratorError):
    """Fatal condition inside a job engine. The engine dies after reporting it."""


class InvalidStepTarget(JobEngineError):
    pass


class MissingDefault(JobEngineError):
    pass


class StepDispatchFailed(JobEngineError):
    def __init__(self, error: ErrorResult) -> None:
        super().__init__(f"Step dispatch failed: {error}")
        self.error = error
