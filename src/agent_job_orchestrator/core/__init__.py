"""Core package: configuration, logging, errors, events, registry and supervision.

Submodules are imported directly; this package imports nothing so agents,
servings and jobs can depend on it without cycles.
"""
