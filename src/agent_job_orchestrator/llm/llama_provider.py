"""Local LLaMA provider backed by llama-cpp-python."""

import logging
from typing import Any

from agent_job_orchestrator.core.config import LLMConfig
from agent_job_orchestrator.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class LLaMAProvider(LLMProvider):
    """Run prompts through a GGUF model loaded in-process.

    Requires llama-cpp-python to be installed:
        pip install llama-cpp-python

    The model is loaded once and is not thread-safe, so a batch runs its
    prompts one after the other on the serving's batch thread.
    """

    def __init__(self, config: LLMConfig) -> None:
        """Load the model.

        Raises:
            ValueError: If model path is not provided.
            ImportError: If llama-cpp-python is not installed.
        """
        if not config.llama_model_path:
            raise ValueError("LLaMA model path is required")

        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ImportError(
                "llama-cpp-python is required for LLaMA provider. "
                "Install it with: pip install llama-cpp-python"
            ) from e

        self.max_tokens = config.llama_max_tokens
        logger.info("Loading LLaMA model from %s", config.llama_model_path)
        self.llm = Llama(
            model_path=str(config.llama_model_path),
            n_ctx=config.llama_n_ctx,
            n_threads=config.llama_n_threads,
            verbose=False,
        )

    def complete(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        kwargs.setdefault("max_tokens", self.max_tokens)
        return self.llm(prompt, **kwargs)
