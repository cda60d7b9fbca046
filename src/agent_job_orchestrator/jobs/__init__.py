"""Jobs: step definitions and the per-job state machine.

A job is strictly sequential per run. Steps may branch on the literal result
of their agent; every run ends through an explicit END target or fails.
"""

__all__: list[str] = []
