"""FastAPI app factory.

Endpoints are thin wrappers over a running :class:`Orchestrator`.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from typing import Any, NoReturn

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from agent_job_orchestrator import __version__
from agent_job_orchestrator.agents.config import Prompt
from agent_job_orchestrator.core.errors import ErrorReason, ErrorResult
from agent_job_orchestrator.core.events import EventRecorder, JobEvent
from agent_job_orchestrator.core.orchestrator import Orchestrator
from agent_job_orchestrator.server.config import ServerSettings
from agent_job_orchestrator.server.models import (
    ApiAgent,
    ApiEvent,
    ApiJob,
    ApiServing,
    ApiStep,
    RunAccepted,
    RunRequest,
)

logger = logging.getLogger(__name__)

_STATUS_CODES: dict[ErrorReason, int] = {
    ErrorReason.JOB_NOT_FOUND: 404,
    ErrorReason.AGENT_NOT_FOUND: 404,
    ErrorReason.SERVING_NOT_FOUND: 404,
    ErrorReason.JOB_ALREADY_RUNNING: 409,
    ErrorReason.INPUT_REQUIRED: 422,
}


def _raise_for(error: ErrorResult) -> NoReturn:
    raise HTTPException(status_code=_STATUS_CODES.get(error.reason, 400), detail=error.reason.value)


def _payload(value: object) -> Any:
    if isinstance(value, ErrorResult):
        return value.reason.value
    if isinstance(value, BaseException):
        return str(value)
    return value


def _to_api_event(event: JobEvent) -> ApiEvent:
    return ApiEvent(
        type=event.type.value,
        job=event.job_name or "",
        step_index=event.step_index,
        payload=_payload(event.payload),
    )


def _prompt_json(prompt: str | Prompt | None) -> str | dict[str, Any] | None:
    if isinstance(prompt, Prompt):
        return {k: v for k, v in dataclasses.asdict(prompt).items() if v is not None}
    return prompt


def create_app(orchestrator: Orchestrator, settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or ServerSettings()

    app = FastAPI(
        title="Agent Job Orchestrator",
        version=__version__,
        description="REST API over a running agent job orchestrator.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Events of the latest accepted run, per job name.
    recorders: dict[str, EventRecorder] = {}
    recorders_lock = threading.Lock()

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/jobs/{name}", response_model=ApiJob)
    def get_job(name: str) -> ApiJob:
        engine = orchestrator.jobs.whereis(name)
        if engine is None:
            raise HTTPException(status_code=404, detail=ErrorReason.JOB_NOT_FOUND.value)
        snapshot = engine.snapshot()
        return ApiJob(
            name=snapshot.name,
            description=engine.config.description,
            status=snapshot.status.value,
            step_index=snapshot.step_index,
            steps=[
                ApiStep(
                    agent=step.agent,
                    objective=step.objective,
                    conditions=dict(step.conditions) if step.conditions is not None else None,
                    default=step.default,
                )
                for step in engine.config.steps
            ],
        )

    @app.post("/api/v1/jobs/{name}/run", response_model=RunAccepted, status_code=202)
    def run_job(name: str, req: RunRequest) -> RunAccepted:
        recorder = EventRecorder()
        result = orchestrator.jobs.run(name, req.input, caller=recorder)
        if isinstance(result, ErrorResult):
            logger.info("Run of job %s rejected: %s", name, result, extra={"job": name})
            _raise_for(result)
        with recorders_lock:
            recorders[name] = recorder
        return RunAccepted(job=name)

    @app.get("/api/v1/jobs/{name}/events", response_model=list[ApiEvent])
    def get_job_events(name: str) -> list[ApiEvent]:
        with recorders_lock:
            recorder = recorders.get(name)
        if recorder is None:
            raise HTTPException(status_code=404, detail="No run recorded for this job")
        return [_to_api_event(event) for event in recorder.events[: settings.events_limit]]

    @app.get("/api/v1/agents/{name}", response_model=ApiAgent)
    def get_agent(name: str) -> ApiAgent:
        config = orchestrator.agents.get_config(name)
        if isinstance(config, ErrorResult):
            _raise_for(config)
        return ApiAgent(
            name=config.name,
            serving=config.serving,
            prompt=_prompt_json(config.prompt),
            has_tool=config.tool is not None,
            knowledge=config.knowledge,
        )

    @app.get("/api/v1/servings/{name}", response_model=ApiServing)
    def get_serving(name: str) -> ApiServing:
        config = orchestrator.servings.get_config(name)
        if isinstance(config, ErrorResult):
            _raise_for(config)
        return ApiServing(
            name=config.name,
            backend=type(config.serving).__name__,
            args={k: str(v) for k, v in config.args.items()},
        )

    return app
