"""OpenAI chat completions provider."""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from openai import OpenAI

from agent_job_orchestrator.core.config import LLMConfig
from agent_job_orchestrator.llm.provider import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """Send each prompt as a single user message to the chat completions API.

    A batch is sent as concurrent requests (at most ``batch_size`` at once),
    since the chat API takes one conversation per request.
    """

    def __init__(self, config: LLMConfig) -> None:
        """Create the API client.

        Raises:
            ValueError: If API key is not provided.
        """
        if not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.client = OpenAI(api_key=config.openai_api_key)
        self.model = config.openai_model
        self.temperature = config.openai_temperature
        self.max_concurrency = config.batch_size

        logger.info("OpenAI provider using model %s", self.model)

    def complete(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        kwargs.setdefault("temperature", self.temperature)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **kwargs,
        )
        return response.model_dump()

    def generate_batch(self, prompts: list[str], **kwargs: Any) -> list[Any]:
        if len(prompts) == 1:
            return [self.complete(prompts[0], **kwargs)]
        logger.debug("Sending %d prompts to %s", len(prompts), self.model)
        workers = min(len(prompts), self.max_concurrency)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="openai") as pool:
            return list(pool.map(lambda prompt: self.complete(prompt, **kwargs), prompts))
