"""Job engine: one state machine per started job.

Lifecycle::

    init --run--> running --+--> complete
                            +--> error

``run`` is accepted only from ``init``; it returns at once and the steps are
executed on the engine's own thread. Every transition of interest is reported
to the run's caller as a :class:`JobEvent`. Both terminal states end the
engine; its supervisor then decides whether a fresh ``init`` engine replaces
it under the same name. Nothing of the previous run is carried over.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from agent_job_orchestrator.agents.message import Message
from agent_job_orchestrator.core.errors import (
    ErrorReason,
    ErrorResult,
    InvalidStepTarget,
    MissingDefault,
    StepDispatchFailed,
)
from agent_job_orchestrator.core.events import COMPLETE, EventSink, EventType, JobEvent, emit
from agent_job_orchestrator.core.logging import log_context
from agent_job_orchestrator.core.supervisor import ExitReason
from agent_job_orchestrator.core.worker import Worker
from agent_job_orchestrator.jobs.config import DEFAULT_KEY, END, JobConfig, Step, StepTarget

logger = logging.getLogger(__name__)

Dispatch = Callable[[Message], "Message | ErrorResult"]
ExitHook = Callable[["JobEngine", ExitReason], object]


class JobStatus(str, Enum):
    INIT = "init"
    RUNNING = "running"
    ERROR = "error"
    COMPLETE = "complete"


ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
    JobStatus.INIT: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETE, JobStatus.ERROR},
    JobStatus.COMPLETE: set(),
    JobStatus.ERROR: set(),
}


class IllegalTransitionError(ValueError):
    pass


def transition(current: JobStatus, to: JobStatus) -> JobStatus:
    if to not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


@dataclass(frozen=True, slots=True)
class JobSnapshot:
    name: str
    status: JobStatus
    step_index: int

    def to_json(self) -> dict[str, object]:
        return {"name": self.name, "status": self.status.value, "step_index": self.step_index}


def resolve_target(step: Step, result: str, step_count: int) -> StepTarget:
    """Pick the target for ``result`` from a step's conditions.

    Exact match first, then ``step.default``, then the ``"__DEFAULT__"`` key.

    Raises:
        MissingDefault: Nothing matched and there is no default.
        InvalidStepTarget: The chosen target is neither END nor a valid index.
    """
    conditions = step.conditions or {}
    if result in conditions:
        raw = conditions[result]
    elif step.default is not None:
        raw = step.default
    elif DEFAULT_KEY in conditions:
        raw = conditions[DEFAULT_KEY]
    else:
        raise MissingDefault(f"No condition matches {result!r} and no default is set")

    if isinstance(raw, str) and raw == END:
        return END
    if isinstance(raw, int) and not isinstance(raw, bool) and 0 <= raw < step_count:
        return raw
    raise InvalidStepTarget(f"Invalid step index: {raw!r}")


class JobEngine(Worker):
    kind = "job"

    def __init__(
        self,
        config: JobConfig,
        *,
        dispatch: Dispatch,
        on_exit: ExitHook | None = None,
    ) -> None:
        super().__init__(config.name)
        self.config = config
        self._dispatch = dispatch
        self._on_exit = on_exit
        self._lock = threading.Lock()
        self._status = JobStatus.INIT
        self._step_index = 0
        self._caller: EventSink | None = None
        self._thread: threading.Thread | None = None

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def step_index(self) -> int:
        return self._step_index

    def snapshot(self) -> JobSnapshot:
        with self._lock:
            return JobSnapshot(name=self.name, status=self._status, step_index=self._step_index)

    def run(self, input: str, caller: EventSink | None = None) -> Literal[True] | ErrorResult:
        """Start executing the job's steps with ``input``. Does not wait for them."""
        with self._lock:
            if not self.is_alive:
                return ErrorResult(ErrorReason.JOB_NOT_FOUND, self.name)
            if self._status == JobStatus.RUNNING:
                return ErrorResult(ErrorReason.JOB_ALREADY_RUNNING, self.name)
            if not input:
                return ErrorResult(ErrorReason.INPUT_REQUIRED, self.name)
            self._status = transition(self._status, JobStatus.RUNNING)
            self._step_index = 0
            self._caller = caller

        logger.info("Job %s started", self.name, extra={"job": self.name})
        emit(caller, JobEvent(EventType.JOB_STARTED, self.name))

        self._thread = threading.Thread(
            target=self._execute, args=(input,), name=f"job-{self.name}", daemon=True
        )
        self._thread.start()
        return True

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the current run's thread. Returns True once it has finished."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _execute(self, input: str) -> None:
        with log_context(job=self.name):
            try:
                finished = self._run_steps(input)
            except StepDispatchFailed as e:
                self._fail(e, e.error)
            except Exception as e:
                self._fail(e, e)
            else:
                if finished:
                    self._complete()

    def _run_steps(self, input: str) -> bool:
        steps = self.config.steps
        index = 0
        while True:
            if not self.is_alive:
                logger.info("Job %s stopped at step %s", self.name, index)
                return False
            if not 0 <= index < len(steps):
                raise InvalidStepTarget(
                    f"Step index {index} is out of range for {len(steps)} step(s); "
                    "the job must end through an explicit END condition"
                )

            step = steps[index]
            with self._lock:
                self._step_index = index

            message = Message(
                input=input,
                agent_name=step.agent,
                job_name=self.name,
                job_description=self.config.description,
                step_index=index,
                step_objective=step.objective,
                caller=self._caller,
            )
            emit(self._caller, JobEvent(EventType.STEP_STARTED, self.name, index, input))
            with log_context(step=index):
                logger.debug("Job %s step %s -> agent %s", self.name, index, step.agent)
                reply = self._dispatch(message)
            if isinstance(reply, ErrorResult):
                raise StepDispatchFailed(reply)
            result = reply.result or ""
            emit(self._caller, JobEvent(EventType.STEP_RESULT, self.name, index, result))

            if not step.routes:
                index += 1
            else:
                target = resolve_target(step, result, len(steps))
                if target == END:
                    return True
                index = int(target)
            input = result

    def _complete(self) -> None:
        with self._lock:
            self._status = transition(self._status, JobStatus.COMPLETE)
        logger.info("Job %s complete", self.name)
        self._exit(ExitReason.NORMAL, JobEvent(EventType.JOB_ENDED, self.name, None, COMPLETE))

    def _fail(self, error: Exception, payload: object) -> None:
        with self._lock:
            self._status = transition(self._status, JobStatus.ERROR)
            index = self._step_index
        logger.error(
            "Job %s failed at step %s: %s", self.name, index, error,
            exc_info=not isinstance(error, StepDispatchFailed),
        )
        self._exit(ExitReason.ERROR, JobEvent(EventType.JOB_ERROR, self.name, index, payload))

    def _exit(self, reason: ExitReason, event: JobEvent) -> None:
        # The replacement is registered before the caller hears about the end,
        # so a caller reacting to the event already finds the fresh engine.
        caller = self._caller
        self.stop()
        if self._on_exit is not None:
            self._on_exit(self, reason)
        emit(caller, event)
