"""Unit tests for the worker registry and supervisor."""

from __future__ import annotations

import logging

import pytest

from agent_job_orchestrator.core.errors import (
    AlreadyRegistered,
    ErrorReason,
    ErrorResult,
    WorkerNotAlive,
)
from agent_job_orchestrator.core.orchestrator import Orchestrator
from agent_job_orchestrator.core.registry import Registry
from agent_job_orchestrator.core.supervisor import (
    ChildSpec,
    ExitReason,
    RestartPolicy,
    Supervisor,
)
from agent_job_orchestrator.core.worker import Worker
from agent_job_orchestrator.jobs.config import JobConfig
from agent_job_orchestrator.jobs.engine import JobEngine


class FailingWorker(Worker):
    def init(self) -> None:
        raise RuntimeError("boom")


def _spec(registry: Registry, name: str = "w", **kwargs: object) -> ChildSpec:
    return ChildSpec(
        name=name, config={"name": name}, factory=lambda: Worker(name), registry=registry, **kwargs
    )


def test_register_and_lookup() -> None:
    registry: Registry[str, int] = Registry("test")
    registry.register("a", "handle", 1)

    entry = registry.lookup("a")
    assert entry is not None
    assert entry.handle == "handle"
    assert entry.config == 1
    assert registry.whereis("missing") is None
    assert "a" in registry
    assert len(registry) == 1


def test_register_twice_carries_existing() -> None:
    registry: Registry[str, int] = Registry("test")
    first = registry.register("a", "one", 1)

    with pytest.raises(AlreadyRegistered) as exc_info:
        registry.register("a", "two", 2)

    assert exc_info.value.existing == first


def test_unregister_ignores_stale_handle() -> None:
    registry: Registry[str, int] = Registry("test")
    registry.register("a", "new", 1)

    assert registry.unregister("a", "old") is False
    assert registry.whereis("a") == "new"
    assert registry.unregister("a") is True
    assert registry.names() == []


def test_start_child_registers_live_worker() -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")

    worker = supervisor.start_child(_spec(registry))

    assert isinstance(worker, Worker)
    assert worker.is_alive
    assert registry.whereis("w") is worker
    supervisor.shutdown()
    assert not worker.is_alive
    assert registry.names() == []


def test_start_child_twice_returns_existing(caplog: pytest.LogCaptureFixture) -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")
    first = supervisor.start_child(_spec(registry))

    with caplog.at_level(logging.WARNING):
        second = supervisor.start_child(_spec(registry))

    assert second is first
    assert "Worker w already started" in caplog.text
    supervisor.shutdown()


def test_start_child_failure_returns_error() -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")
    spec = ChildSpec(name="bad", config=None, factory=lambda: FailingWorker("bad"), registry=registry)

    result = supervisor.start_child(spec)

    assert isinstance(result, ErrorResult)
    assert result.reason == ErrorReason.START_FAILED
    assert "bad" not in registry


def test_terminate_child() -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")
    worker = supervisor.start_child(_spec(registry))

    assert supervisor.terminate_child(registry, "w") is True
    assert not worker.is_alive
    assert supervisor.terminate_child(registry, "w") is False


@pytest.mark.parametrize(
    ("policy", "reason", "restarted"),
    [
        (RestartPolicy.PERMANENT, ExitReason.NORMAL, True),
        (RestartPolicy.PERMANENT, ExitReason.ERROR, True),
        (RestartPolicy.TRANSIENT, ExitReason.NORMAL, False),
        (RestartPolicy.TRANSIENT, ExitReason.ERROR, True),
        (RestartPolicy.TEMPORARY, ExitReason.ERROR, False),
    ],
)
def test_child_exited_applies_restart_policy(
    policy: RestartPolicy, reason: ExitReason, restarted: bool
) -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")
    worker = supervisor.start_child(_spec(registry, restart=policy))
    assert isinstance(worker, Worker)

    worker.stop()
    replacement = supervisor.child_exited(registry, worker, reason)

    if restarted:
        assert replacement is not None
        assert replacement is not worker
        assert replacement.is_alive
        assert registry.whereis("w") is replacement
    else:
        assert replacement is None
        assert "w" not in registry
    supervisor.shutdown()


def test_restart_child_replaces_worker() -> None:
    supervisor = Supervisor()
    registry: Registry[Worker, dict] = Registry("worker")
    worker = supervisor.start_child(_spec(registry))

    replacement = supervisor.restart_child(registry, "w")

    assert replacement is not worker
    assert not worker.is_alive
    with pytest.raises(KeyError):
        supervisor.restart_child(registry, "missing")
    supervisor.shutdown()


def test_worker_call_after_stop() -> None:
    worker = Worker("w")
    worker.start()
    assert worker.call(lambda x: x + 1, 1) == 2

    worker.stop()
    with pytest.raises(WorkerNotAlive):
        worker.call(lambda: None)


def test_worker_opens_mailbox_on_first_call() -> None:
    worker = Worker("w")
    worker.start()
    assert worker._mailbox is None

    assert worker.call(lambda: "called") == "called"
    assert worker._mailbox is not None

    worker.stop()
    assert worker._mailbox is None


def test_job_engine_never_opens_mailbox(orchestrator: Orchestrator) -> None:
    engine = orchestrator.jobs.start(JobConfig(name="idle_job", steps=[]))
    assert isinstance(engine, JobEngine)

    assert engine.is_alive
    assert engine._mailbox is None
