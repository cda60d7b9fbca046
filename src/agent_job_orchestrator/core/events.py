"""Job lifecycle events pushed to the caller of a job run.

Events are fire-and-forget notifications. A caller passes any callable sink
(``queue.put``, a list's ``append``, an :class:`EventRecorder`) and receives
events in the order they happen within a job.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    JOB_STARTED = "job_started"
    STEP_STARTED = "step_started"
    STEP_RESULT = "step_result"
    TOOL_STARTED = "tool_started"
    TOOL_RAW = "tool_raw"
    TOOL_RESULT = "tool_result"
    JOB_ENDED = "job_ended"
    JOB_ERROR = "job_error"


TERMINAL_EVENTS: frozenset[EventType] = frozenset({EventType.JOB_ENDED, EventType.JOB_ERROR})

COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class JobEvent:
    type: EventType
    job_name: str | None
    step_index: int | None = None
    payload: object = None

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS

    def as_tuple(self) -> tuple[object, ...]:
        """Tagged tuple form consumers pattern-match on.

        ``("job_started", name)``, ``("step_result", (name, index), result)``,
        ``("job_ended", name, "complete")``,
        ``("job_error", (name, index), ("error", reason))``.
        """
        if self.type == EventType.JOB_STARTED:
            return (self.type.value, self.job_name)
        if self.type == EventType.JOB_ENDED:
            return (self.type.value, self.job_name, self.payload)
        if self.type == EventType.JOB_ERROR:
            return (self.type.value, (self.job_name, self.step_index), ("error", self.payload))
        return (self.type.value, (self.job_name, self.step_index), self.payload)


EventSink = Callable[[JobEvent], None]


def emit(sink: EventSink | None, event: JobEvent) -> None:
    """Deliver ``event`` to ``sink``. A failing sink is logged, never propagated."""
    if sink is None:
        return
    try:
        sink(event)
    except Exception:
        logger.exception(
            "Event sink failed for %s", event.type.value, extra={"job": event.job_name}
        )


class EventRecorder:
    """Thread-safe sink that keeps every event it receives."""

    def __init__(self) -> None:
        self._events: list[JobEvent] = []
        self._cond = threading.Condition()

    def __call__(self, event: JobEvent) -> None:
        with self._cond:
            self._events.append(event)
            self._cond.notify_all()

    @property
    def events(self) -> list[JobEvent]:
        with self._cond:
            return list(self._events)

    def tuples(self) -> list[tuple[object, ...]]:
        return [event.as_tuple() for event in self.events]

    def wait_for(
        self, predicate: Callable[[JobEvent], bool], timeout: float = 5.0
    ) -> JobEvent | None:
        """Block until an event matching ``predicate`` has been recorded."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while True:
                for event in self._events:
                    if predicate(event):
                        return event
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)

    def wait_for_terminal(self, timeout: float = 5.0) -> JobEvent | None:
        return self.wait_for(lambda event: event.is_terminal, timeout)
