#!/usr/bin/env python3
"""Run a two-step job against a serving built from settings.

This demonstrates using the orchestrator components directly:

* load settings from `.env` (``ORCHESTRATOR_LLM_*``)
* start a serving, two agents and a job
* print the job's events as they arrive

The job drafts a tagline for a product, then a reviewer either accepts it
(``APPROVED``) or sends the review back to the writer.
"""

from __future__ import annotations

import argparse
import queue
from typing import Sequence

from agent_job_orchestrator import (
    END,
    AgentConfig,
    JobConfig,
    JobEvent,
    Orchestrator,
    Prompt,
    Step,
)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a writer/reviewer job (example).")
    parser.add_argument("product", help="Product to write a tagline for")
    parser.add_argument("--timeout", type=float, default=300.0, help="Seconds to wait")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    with Orchestrator() as orchestrator:
        serving = orchestrator.start_serving_from_settings("llm")
        if not serving:
            print(f"Could not start serving: {serving}")
            return 1

        orchestrator.agents.start(
            [
                AgentConfig(
                    name="writer",
                    serving="llm",
                    prompt=Prompt(
                        identity="You are a copywriter who writes one-line taglines.",
                        constraints="Reply with the tagline only.",
                    ),
                ),
                AgentConfig(
                    name="reviewer",
                    serving="llm",
                    prompt=(
                        "Reply with exactly APPROVED if the tagline is good, otherwise reply "
                        "with one sentence of feedback."
                    ),
                ),
            ]
        )
        orchestrator.jobs.start(
            JobConfig(
                name="tagline",
                description="write a tagline for a product",
                steps=[
                    Step(agent="writer", objective="write or improve the tagline"),
                    Step(agent="reviewer", conditions={"APPROVED": END}, default=0),
                ],
            )
        )

        events: queue.Queue[JobEvent] = queue.Queue()
        result = orchestrator.jobs.run("tagline", args.product, caller=events.put)
        if not result:
            print(f"Could not run job: {result}")
            return 1

        while True:
            try:
                event = events.get(timeout=args.timeout)
            except queue.Empty:
                print("Timed out waiting for the job")
                return 1
            print(event.as_tuple())
            if event.is_terminal:
                return 0


if __name__ == "__main__":
    raise SystemExit(main())
