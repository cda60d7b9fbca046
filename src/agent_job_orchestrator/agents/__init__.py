"""Agents: prompt construction, tool contract and agent workers."""

__all__: list[str] = []
