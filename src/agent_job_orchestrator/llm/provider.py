"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any


class LLMProvider(ABC):
    """A language model behind a serving.

    Providers return their raw completion (for example the response dict of
    the OpenAI or llama-cpp API). The serving reduces it to the first
    candidate's text, so providers never parse responses themselves.
    """

    @abstractmethod
    def complete(self, prompt: str, **kwargs: Any) -> Any:
        """Run one fully built prompt and return the raw completion."""

    def generate_batch(self, prompts: list[str], **kwargs: Any) -> list[Any]:
        """Complete several prompts, one result per prompt and in order.

        The default runs them one by one, which suits a single local model.
        """
        return [self.complete(prompt, **kwargs) for prompt in prompts]
