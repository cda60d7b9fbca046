"""Lightweight named workers.

A worker that needs serialized access calls ``call``: the function runs on
the worker's single-thread mailbox, opened on first use, and the caller blocks
until it has run. Calls into one worker are serialized while different
workers run concurrently. The caller's log context travels with the call.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import TypeVar

from agent_job_orchestrator.core.errors import WorkerNotAlive

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Worker:
    kind = "worker"

    def __init__(self, name: str) -> None:
        self.name = name
        self._alive = False
        self._state_lock = threading.Lock()
        self._mailbox: ThreadPoolExecutor | None = None

    @property
    def is_alive(self) -> bool:
        return self._alive

    def start(self) -> None:
        """Run ``init`` and mark the worker alive.

        An exception from ``init`` propagates and the worker stays dead.
        """
        self.init()
        with self._state_lock:
            self._alive = True
        logger.debug("Started %s %r", self.kind, self.name)

    def stop(self) -> None:
        with self._state_lock:
            if not self._alive:
                return
            self._alive = False
            mailbox, self._mailbox = self._mailbox, None
        if mailbox is not None:
            mailbox.shutdown(wait=False, cancel_futures=True)
        self.terminate()
        logger.debug("Stopped %s %r", self.kind, self.name)

    def call(self, fn: Callable[..., T], *args: object) -> T:
        context = contextvars.copy_context()
        with self._state_lock:
            if not self._alive:
                raise WorkerNotAlive(f"{self.kind} {self.name!r} is not alive")
            if self._mailbox is None:
                self._mailbox = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=f"{self.kind}-{self.name}"
                )
            future: Future[T] = self._mailbox.submit(context.run, fn, *args)
        try:
            return future.result()
        except CancelledError as e:
            raise WorkerNotAlive(f"{self.kind} {self.name!r} stopped") from e

    def init(self) -> None:
        """Hook run once before the worker accepts calls."""

    def terminate(self) -> None:
        """Hook run once after the worker stops accepting calls."""

    def __repr__(self) -> str:
        state = "alive" if self._alive else "dead"
        return f"<{type(self).__name__} {self.name!r} {state}>"
