"""Language model providers a serving can be built on.

Providers are created by :func:`agent_job_orchestrator.serving.backends.create_backend`
from ``LLMConfig`` and run behind a batch-model backend.
"""

from agent_job_orchestrator.llm.llama_provider import LLaMAProvider
from agent_job_orchestrator.llm.openai_provider import OpenAIProvider
from agent_job_orchestrator.llm.provider import LLMProvider

__all__ = [
    "LLMProvider",
    "LLaMAProvider",
    "OpenAIProvider",
]
