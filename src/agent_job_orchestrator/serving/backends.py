"""Inference backends a serving can wrap.

Two shapes share the :class:`ServingBackend` interface:

* :class:`BatchModelBackend` owns a model. Concurrent ``run`` calls are
  queued and executed together in batches by a single background thread.
  Servings built from ``LLMConfig`` on an LLM provider are of this kind.
* :class:`WorkerBackend` is a plain request/response worker handling one
  message at a time. :class:`ProviderBackend` (any LLM provider, unbatched)
  and :class:`HttpBackend` (any HTTP endpoint) are workers of this kind.

Backends never retry; a failing call raises to the caller.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future
from typing import Any

import requests

from agent_job_orchestrator.agents.message import Message
from agent_job_orchestrator.core.config import LLMConfig
from agent_job_orchestrator.core.errors import WorkerNotAlive
from agent_job_orchestrator.llm.llama_provider import LLaMAProvider
from agent_job_orchestrator.llm.openai_provider import OpenAIProvider
from agent_job_orchestrator.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class ServingBackend(ABC):
    def start(self, name: str) -> None:
        """Called once when the owning serving starts."""

    def stop(self) -> None:
        """Called once when the owning serving stops."""

    @abstractmethod
    def run(self, message: Message) -> str:
        """Run ``message.prompt`` (already finalized) and return the generated text."""


def extract_text(result: Any) -> str:
    """Return the first candidate's text from a structured model result.

    Understands ``{"results": [{"text": ...}]}`` and llama-cpp / OpenAI style
    ``{"choices": [{"text": ...}]}`` results. Anything else is returned as text.
    """
    if isinstance(result, str):
        return result
    if isinstance(result, Mapping):
        for key in ("results", "choices"):
            candidates = result.get(key)
            if isinstance(candidates, Sequence) and candidates:
                first = candidates[0]
                if isinstance(first, Mapping):
                    if "text" in first:
                        return str(first["text"])
                    message = first.get("message")
                    if isinstance(message, Mapping) and "content" in message:
                        return str(message["content"] or "")
    return str(result)


_STOP = object()


class BatchModelBackend(ServingBackend):
    """Queue prompts and run them through a batch model.

    Args:
        model: Called with a list of prompts, returns one result per prompt.
        batch_size: Maximum prompts per batch.
        batch_timeout: Seconds a started batch waits for more prompts.
    """

    def __init__(
        self,
        model: Callable[[list[str]], Sequence[Any]],
        *,
        batch_size: int = 8,
        batch_timeout: float = 0.01,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._model = model
        self.batch_size = batch_size
        self.batch_timeout = batch_timeout
        self._queue: queue.Queue[Any] = queue.Queue()
        self._thread: threading.Thread | None = None
        # Guards _running and every put, so nothing is queued behind _STOP.
        self._lock = threading.Lock()
        self._running = False

    def start(self, name: str) -> None:
        with self._lock:
            self._thread = threading.Thread(
                target=self._loop, name=f"batch-{name}", daemon=True
            )
            self._running = True
        self._thread.start()

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._queue.put(_STOP)
            thread = self._thread
        if thread is not None:
            thread.join()
        self._thread = None
        self._fail_pending()

    def run(self, message: Message) -> str:
        future: Future[str] = Future()
        with self._lock:
            if not self._running:
                raise WorkerNotAlive("Batch backend is not running")
            self._queue.put((message.prompt or "", future))
        return future.result()

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return

            batch = [item]
            stopping = False
            deadline = time.monotonic() + self.batch_timeout
            while len(batch) < self.batch_size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                try:
                    nxt = self._queue.get(timeout=remaining)
                except queue.Empty:
                    break
                if nxt is _STOP:
                    stopping = True
                    break
                batch.append(nxt)

            self._run_batch(batch)
            if stopping:
                return

    def _run_batch(self, batch: list[tuple[str, Future[str]]]) -> None:
        prompts = [prompt for prompt, _ in batch]
        logger.debug("Running batch of %d prompts", len(prompts))
        try:
            results = list(self._model(prompts))
            if len(results) != len(batch):
                raise RuntimeError(
                    f"Model returned {len(results)} results for {len(batch)} prompts"
                )
        except Exception as e:
            for _, future in batch:
                future.set_exception(e)
            return

        for (_, future), result in zip(batch, results):
            future.set_result(extract_text(result))

    def _fail_pending(self) -> None:
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return
            if item is not _STOP:
                item[1].set_exception(WorkerNotAlive("Batch backend stopped"))


class WorkerBackend(ServingBackend):
    """Request/response worker: ``handler(message) -> text``, one call at a time."""

    def __init__(self, handler: Callable[[Message], str]) -> None:
        self._handler = handler
        self._lock = threading.Lock()

    def run(self, message: Message) -> str:
        with self._lock:
            return self._handler(message)


class ProviderBackend(WorkerBackend):
    """Send finalized prompts to an :class:`LLMProvider`."""

    def __init__(self, provider: LLMProvider, **complete_kwargs: Any) -> None:
        super().__init__(self._complete)
        self.provider = provider
        self._complete_kwargs = complete_kwargs

    def _complete(self, message: Message) -> str:
        return extract_text(self.provider.complete(message.prompt or "", **self._complete_kwargs))


class HttpBackend(WorkerBackend):
    """POST each message to an HTTP endpoint.

    The request body is JSON with ``prompt``, ``input`` and routing fields. A
    JSON response is read through :func:`extract_text` (``text`` / ``result``
    keys are also accepted); any other response body is used verbatim.
    """

    def __init__(self, url: str, *, timeout: float = 60.0) -> None:
        super().__init__(self._post)
        self.url = url
        self.timeout = timeout
        self._session: requests.Session | None = None

    def start(self, name: str) -> None:
        self._session = requests.Session()

    def stop(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def _post(self, message: Message) -> str:
        if self._session is not None:
            return self._send(self._session, message)
        with requests.Session() as session:
            return self._send(session, message)

    def _send(self, session: requests.Session, message: Message) -> str:
        response = session.post(
            self.url,
            json={
                "prompt": message.prompt,
                "input": message.input,
                "agent_name": message.agent_name,
                "serving_name": message.serving_name,
                "job_name": message.job_name,
                "step_index": message.step_index,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()

        if "application/json" not in response.headers.get("Content-Type", ""):
            return response.text
        body = response.json()
        if isinstance(body, Mapping):
            for key in ("text", "result"):
                if isinstance(body.get(key), str):
                    return body[key]
        return extract_text(body)


def create_backend(config: LLMConfig) -> ServingBackend:
    """Build the backend described by settings.

    Raises:
        ValueError: If the selected backend is missing required settings.
        ImportError: If the llama backend is selected without llama-cpp-python.
    """
    logger.info("Creating serving backend: %s", config.provider)

    if config.provider == "http":
        if not config.http_url:
            raise ValueError("HTTP serving URL is required")
        return HttpBackend(config.http_url, timeout=config.http_timeout_seconds)

    provider: LLMProvider
    if config.provider == "llama":
        provider = LLaMAProvider(config)
    else:
        provider = OpenAIProvider(config)
    return BatchModelBackend(
        provider.generate_batch,
        batch_size=config.batch_size,
        batch_timeout=config.batch_timeout_seconds,
    )
