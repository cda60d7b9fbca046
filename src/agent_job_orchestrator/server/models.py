"""Pydantic models for the REST server."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

JobStatus = Literal["init", "running", "error", "complete"]


class ApiStep(BaseModel):
    agent: str
    objective: str | None = None
    conditions: dict[str, Any] | None = None
    default: Any = None


class ApiJob(BaseModel):
    name: str
    description: str | None = None
    status: JobStatus
    step_index: int
    steps: list[ApiStep] = Field(default_factory=list)


class RunRequest(BaseModel):
    input: str = Field(min_length=1)


class RunAccepted(BaseModel):
    job: str
    status: Literal["running"] = "running"


class ApiEvent(BaseModel):
    type: str
    job: str
    step_index: int | None = None
    payload: Any = None


class ApiAgent(BaseModel):
    name: str
    serving: str
    prompt: str | dict[str, Any] | None = None
    has_tool: bool = False
    knowledge: Any = None


class ApiServing(BaseModel):
    name: str
    backend: str
    args: dict[str, Any] = Field(default_factory=dict)
