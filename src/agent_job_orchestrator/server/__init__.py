"""REST adapter over a running orchestrator."""

from agent_job_orchestrator.server.app import create_app
from agent_job_orchestrator.server.config import ServerSettings

__all__ = ["ServerSettings", "create_app"]
